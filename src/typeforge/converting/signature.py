"""
Conversion signatures: ordered (source, target) pairs of type descriptors.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..inspecting.descriptors import TypeDescriptor, describe

__all__ = [
    "ConversionSignature",
]


@dataclass(frozen=True)
class ConversionSignature:
    """
    Immutable pair of descriptors identifying a conversion from `source` to
    `target`. Annotations are accepted and converted to descriptors.

    Equality is exact and structural; `is_compatible_with()` implements the looser
    matching used when no exact match exists.
    """

    source: TypeDescriptor
    """
    Type converted from.
    """

    target: TypeDescriptor
    """
    Type converted to.
    """

    def __post_init__(self):
        object.__setattr__(self, "source", _describe_component(self.source, "source"))
        object.__setattr__(self, "target", _describe_component(self.target, "target"))

    def __str__(self) -> str:
        return f"{self.source} -> {self.target}"

    def is_compatible_with(self, requested: ConversionSignature | None, /) -> bool:
        """
        Check whether a converter registered with this signature may serve the
        requested one.

        Both components are checked in the same direction: this source must be a
        subtype of the requested source, and this target a subtype of the requested
        target. This is not the usual contravariant-parameter rule for functions;
        resolution relies on it as-is.
        """
        if requested is None:
            return False
        return self.source.is_subtype(requested.source) and self.target.is_subtype(
            requested.target
        )

    def is_assignable_from_extracted(
        self, candidate: ConversionSignature | None, /
    ) -> bool:
        """
        Check whether this signature, used as a registration key, accepts the
        signature extracted from a converter's callable. Same directional rule as
        `is_compatible_with()`.
        """
        if candidate is None:
            return False
        return self.source.is_subtype(candidate.source) and self.target.is_subtype(
            candidate.target
        )


def _describe_component(annotation: TypeDescriptor | Any, name: str) -> TypeDescriptor:
    if annotation is None:
        raise ValueError(f"{name} must not be None")
    descriptor = describe(annotation)
    if descriptor.is_no_value:
        raise ValueError(f"{name} must not be the absence of a value: {descriptor}")
    return descriptor
