"""
Exception classes.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, Generator

if TYPE_CHECKING:
    from .converting.entry import ConverterEntry
    from .converting.signature import ConversionSignature

__all__ = [
    "TypeforgeError",
    "MultipleCausesError",
    "UnsupportedAnnotationError",
    "EntryValidationError",
    "InaccessibleFunctionError",
    "NullOwnerError",
    "InaccessibleOwnerTypeError",
    "OwnerIncompatibilityError",
    "WrongParameterCountError",
    "InvalidParameterTypeError",
    "InvalidReturnTypeError",
    "MalformedEntryError",
    "ProviderError",
    "ConverterCollisionError",
    "SignatureMismatchError",
    "ConverterRegistrationError",
    "ResolutionError",
    "NoCompatibleConvertersError",
    "AmbiguousConvertersError",
    "InvocationError",
]


class TypeforgeError(Exception):
    """
    Base class for all errors raised by this package.
    """


class MultipleCausesError(TypeforgeError):
    """
    Bundle of independent errors found while checking a single operation or batch.

    Every cause is kept and rendered, one per line, so callers can report the full
    set of problems at once.
    """

    causes: tuple[Exception, ...]
    """
    Underlying errors, in the order they were found.
    """

    _action: str = "processing"

    def __init__(self, causes: Iterable[Exception]):
        self.causes = tuple(causes)
        assert self.causes
        super().__init__(self.__format_causes())

    def __format_causes(self) -> str:
        plural = "s" if len(self.causes) > 1 else ""
        lines = [f"Error{plural} occurred during {self._action}:"]
        for cause in self.causes:
            lines += list(_format_cause(cause))
        return "\n".join(lines)


class UnsupportedAnnotationError(TypeforgeError, TypeError):
    """
    Annotation can't be represented as a type descriptor.
    """

    def __init__(self, annotation: Any, reason: str):
        self.annotation = annotation
        super().__init__(f"Unsupported annotation {annotation!r}: {reason}")


class EntryValidationError(TypeforgeError):
    """
    A single reason why a function can't be used as a converter.
    """

    func: Any
    """
    The offending function or callable.
    """

    def __init__(self, func: Any, message: str):
        self.func = func
        super().__init__(f"{_func_name(func)}: {message}")


class InaccessibleFunctionError(EntryValidationError):
    def __init__(self, func: Any, reason: str = "not publicly invokable"):
        super().__init__(func, reason)


class NullOwnerError(EntryValidationError):
    def __init__(self, func: Any):
        super().__init__(func, "requires an owner instance but none was given")


class InaccessibleOwnerTypeError(EntryValidationError):
    def __init__(self, func: Any, owner: Any):
        self.owner = owner
        owner_cls = owner if isinstance(owner, type) else type(owner)
        super().__init__(
            func, f"owner type {owner_cls.__qualname__} is not publicly accessible"
        )


class OwnerIncompatibilityError(EntryValidationError):
    def __init__(self, func: Any, owner: Any, declaring_class: type | None):
        self.owner = owner
        self.declaring_class = declaring_class
        if declaring_class is None:
            reason = f"free function can't be bound to owner {owner!r}"
        else:
            reason = (
                f"owner {owner!r} is not compatible with declaring class "
                f"{declaring_class.__qualname__}"
            )
        super().__init__(func, reason)


class WrongParameterCountError(EntryValidationError):
    def __init__(self, func: Any, count: int, expected: int = 1):
        self.count = count
        self.expected = expected
        super().__init__(
            func, f"takes {count} parameter(s), expected exactly {expected}"
        )


class InvalidParameterTypeError(EntryValidationError):
    def __init__(self, func: Any, reason: str):
        super().__init__(func, f"invalid parameter type: {reason}")


class InvalidReturnTypeError(EntryValidationError):
    def __init__(self, func: Any, reason: str):
        super().__init__(func, f"invalid return type: {reason}")


class MalformedEntryError(MultipleCausesError):
    """
    A would-be converter entry failed structural validation.
    """

    _action = "converter entry validation"


class ProviderError(MultipleCausesError):
    """
    A provider could not expose one or more of an object's converters.
    """

    _action = "converter discovery"


class ConverterCollisionError(TypeforgeError):
    """
    Two non-equal entries claim the same exact signature.
    """

    def __init__(
        self,
        signature: ConversionSignature,
        entry: ConverterEntry,
        existing: ConverterEntry,
    ):
        self.signature = signature
        self.entry = entry
        self.existing = existing
        super().__init__(
            f"Collision at {signature}: {entry} conflicts with {existing}"
        )


class SignatureMismatchError(TypeforgeError):
    """
    Signature used as a registration key doesn't accept the signature derived from
    the entry's callable.
    """

    def __init__(self, signature: ConversionSignature, entry: ConverterEntry):
        self.signature = signature
        self.entry = entry
        super().__init__(
            f"Signature {signature} is not compatible with {entry} "
            f"({entry.extracted_signature})"
        )


class ConverterRegistrationError(MultipleCausesError):
    """
    A registration batch was rejected; nothing from it was committed.
    """

    _action = "converter registration"


class ResolutionError(TypeforgeError):
    """
    Base class for failures to pick a converter for a requested signature.
    """

    requested: ConversionSignature | None


class NoCompatibleConvertersError(ResolutionError):
    """
    No registered entry is compatible with the requested signature.
    """

    def __init__(
        self,
        requested: ConversionSignature | None,
        searched: Iterable[ConverterEntry] = (),
    ):
        self.requested = requested
        self.searched = tuple(searched)
        super().__init__(
            f"No compatible converters found for {requested} "
            f"(searched {len(self.searched)})"
        )


class AmbiguousConvertersError(ResolutionError):
    """
    More than one registered entry is compatible with the requested signature.
    """

    def __init__(
        self,
        requested: ConversionSignature,
        candidates: Iterable[ConverterEntry],
    ):
        self.requested = requested
        self.candidates = tuple(candidates)
        assert len(self.candidates) > 1
        lines = [f"Too many converters found for {requested}:"]
        lines += [f"  {c.signature}: {c}" for c in self.candidates]
        super().__init__("\n".join(lines))


class InvocationError(TypeforgeError):
    """
    Resolved entry could not be invoked or raised during conversion.

    The original exception is available as `cause` and as `__cause__`.
    """

    def __init__(self, entry: ConverterEntry, cause: Exception):
        self.entry = entry
        self.cause = cause
        super().__init__(f"{entry} failed: {type(cause).__name__}: {cause}")
        self.__cause__ = cause


def _format_cause(cause: Exception) -> Generator[str, None, None]:
    yield f"  {type(cause).__name__}:"
    yield from (f"    {m}" for m in str(cause).splitlines())


def _func_name(func: Any) -> str:
    if callable(func):
        return getattr(func, "__qualname__", None) or repr(func)
    return repr(func)
