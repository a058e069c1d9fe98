"""
Selection of the converter entry which serves a requested signature.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from logging import getLogger
from typing import overload

from ..exceptions import AmbiguousConvertersError, NoCompatibleConvertersError
from .entry import ConverterEntry
from .signature import ConversionSignature

__all__ = [
    "ConverterSelector",
]

logger = getLogger(__name__)


class ConverterSelector:
    """
    Picks the entry for a requested signature: an entry whose signature equals the
    requested one wins outright; otherwise exactly one compatible entry must exist.

    With `exact_only`, the compatibility fallback is skipped.
    """

    exact_only: bool

    def __init__(self, *, exact_only: bool = False):
        self.exact_only = exact_only

    def __repr__(self) -> str:
        return f"{type(self).__name__}(exact_only={self.exact_only})"

    @overload
    def resolve(
        self,
        requested: ConversionSignature | None,
        entries: Mapping[ConversionSignature, ConverterEntry],
    ) -> ConverterEntry: ...

    @overload
    def resolve(
        self,
        requested: ConversionSignature | None,
        entries: Iterable[ConverterEntry],
    ) -> ConverterEntry: ...

    def resolve(
        self,
        requested: ConversionSignature | None,
        entries: (
            Mapping[ConversionSignature, ConverterEntry] | Iterable[ConverterEntry]
        ),
    ) -> ConverterEntry:
        """
        Resolve the entry serving the requested signature, from either a collection
        of entries (matched by their own signatures) or a registry (matched by the
        signatures they're stored under).

        :raises NoCompatibleConvertersError: If nothing matches, the request is
            `None` or there are no entries
        :raises AmbiguousConvertersError: If there's no exact match and more than
            one compatible entry
        """
        if isinstance(entries, Mapping):
            # exact match by lookup
            if requested is not None and (entry := entries.get(requested)) is not None:
                logger.debug("Exact match for %s: %s", requested, entry)
                return entry
            pairs = list(entries.items())
        else:
            pairs = [(entry.signature, entry) for entry in entries]

            # exact match
            for signature, entry in pairs:
                if signature == requested:
                    logger.debug("Exact match for %s: %s", requested, entry)
                    return entry

        if requested is None or not pairs:
            raise NoCompatibleConvertersError(requested, (e for _, e in pairs))

        if self.exact_only:
            raise NoCompatibleConvertersError(requested, (e for _, e in pairs))

        compatible = [
            entry
            for signature, entry in pairs
            if signature.is_compatible_with(requested)
        ]

        if not compatible:
            raise NoCompatibleConvertersError(requested, (e for _, e in pairs))
        if len(compatible) > 1:
            raise AmbiguousConvertersError(requested, compatible)

        logger.debug("Compatible match for %s: %s", requested, compatible[0])
        return compatible[0]
