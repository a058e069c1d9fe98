"""
Tests for converter entries.
"""

from pytest import raises

from typeforge.converting.entry import ConverterEntry
from typeforge.converting.signature import ConversionSignature
from typeforge.exceptions import (
    InaccessibleFunctionError,
    InaccessibleOwnerTypeError,
    InvalidParameterTypeError,
    InvalidReturnTypeError,
    InvocationError,
    MalformedEntryError,
    NullOwnerError,
    OwnerIncompatibilityError,
    WrongParameterCountError,
)
from typeforge.inspecting.functions import BindingKind


class Formatter:
    @staticmethod
    def format_int(value: int) -> str:
        return str(value)

    @classmethod
    def parse(cls, value: str) -> int:
        return int(value)

    def format_float(self, value: float) -> str:
        return f"{value:.1f}"

    def format_pair(self, a: int, b: int) -> str:
        return f"{a},{b}"

    def format_keyword(self, *, value: int) -> str:
        return str(value)

    def discard(self, value: int) -> None:
        pass

    def unannotated(self, value):
        return value

    def _hidden(self, value: int) -> str:
        return str(value)

    def _broken(self, a, b) -> None:
        pass


class OtherFormatter:
    def format_float(self, value: float) -> str:
        return str(value)


class _PrivateFormatter:
    def format(self, value: int) -> str:
        return str(value)


class Converter[T]:
    def to_str(self, value: T) -> str:
        return str(value)


class IntConverter(Converter[int]):
    pass


class CallableConverter:
    def __call__(self, value: int) -> str:
        return str(value)


def format_int(value: int) -> str:
    return str(value)


def parse_int(value: str) -> int:
    return int(value)


def _private_function(value: int) -> str:
    return str(value)


def generic_function[T](value: T) -> str:
    return str(value)


def strip_unannotated(value: str):
    return value.strip()


def parse_unannotated(value) -> int:
    return int(value)


def consume(value: None) -> str:
    return ""


def _cause_types(exc_info) -> list[type]:
    return [type(c) for c in exc_info.value.causes]


def test_free_function():
    """
    Test entry for a free function.
    """
    entry = ConverterEntry(format_int)

    assert entry.func is format_int
    assert entry.owner is None
    assert entry.kind is BindingKind.FUNCTION
    assert entry.signature == ConversionSignature(int, str)
    assert entry.extracted_signature == entry.signature
    assert entry.invoke(1) == "1"


def test_bound_method():
    """
    Test that a bound method is split into function and owner.
    """
    formatter = Formatter()
    entry = ConverterEntry(formatter.format_float)

    assert entry.func is Formatter.format_float
    assert entry.owner is formatter
    assert entry.kind is BindingKind.INSTANCE
    assert entry.signature == ConversionSignature(float, str)
    assert entry.invoke(1.5) == "1.5"

    # same entry with explicit owner
    assert ConverterEntry(Formatter.format_float, formatter) == entry


def test_static_method():
    """
    Test entry for a static method, with or without owner.
    """
    entry = ConverterEntry(Formatter.format_int)
    assert entry.kind is BindingKind.STATIC
    assert entry.owner is None
    assert entry.signature == ConversionSignature(int, str)
    assert entry.invoke(2) == "2"

    entry = ConverterEntry(Formatter.format_int, Formatter())
    assert entry.kind is BindingKind.STATIC
    assert entry.invoke(3) == "3"


def test_class_method():
    """
    Test entry for a class method, bound to its class.
    """
    entry = ConverterEntry(Formatter.parse)
    assert entry.kind is BindingKind.CLASS
    assert entry.owner is Formatter
    assert entry.signature == ConversionSignature(str, int)
    assert entry.invoke("3") == 3


def test_callable_object():
    """
    Test entry for an object with `__call__`.
    """
    converter = CallableConverter()
    entry = ConverterEntry(converter)

    assert entry.func is CallableConverter.__call__
    assert entry.owner is converter
    assert entry.signature == ConversionSignature(int, str)
    assert entry.invoke(5) == "5"


def test_generic_owner():
    """
    Test resolving type variables through the owner's class.
    """
    entry = ConverterEntry(IntConverter().to_str)
    assert entry.signature == ConversionSignature(int, str)


def test_explicit_signature():
    """
    Test passing a signature rather than extracting it.
    """
    signature = ConversionSignature(int, str)
    entry = ConverterEntry(lambda value: str(value), signature=signature)
    assert entry.signature == signature
    assert entry.extracted_signature == signature
    assert entry.invoke(4) == "4"

    # annotations are still available as the extracted signature
    entry = ConverterEntry(format_int, signature=ConversionSignature(bool, str))
    assert entry.signature == ConversionSignature(bool, str)
    assert entry.extracted_signature == ConversionSignature(int, str)

    # arity is still checked
    with raises(MalformedEntryError) as exc_info:
        ConverterEntry(lambda a, b: a, signature=signature)
    assert _cause_types(exc_info) == [WrongParameterCountError]


def test_explicit_signature_no_value():
    """
    Test that returning no value is rejected even with a signature.
    """
    signature = ConversionSignature(int, str)

    with raises(MalformedEntryError) as exc_info:
        ConverterEntry(Formatter().discard, signature=signature)
    assert _cause_types(exc_info) == [InvalidReturnTypeError]

    with raises(MalformedEntryError) as exc_info:
        ConverterEntry(consume, signature=signature)
    assert _cause_types(exc_info) == [InvalidParameterTypeError]


def test_explicit_signature_partial():
    """
    Test that the extracted signature is built from whichever annotations exist.
    """
    signature = ConversionSignature(int, str)

    entry = ConverterEntry(Formatter().unannotated, signature=signature)
    assert entry.extracted_signature == signature

    entry = ConverterEntry(strip_unannotated, signature=signature)
    assert entry.extracted_signature == ConversionSignature(str, str)

    entry = ConverterEntry(parse_unannotated, signature=signature)
    assert entry.extracted_signature == ConversionSignature(int, int)


def test_class_callable():
    """
    Test classes used as converters, which require a signature.
    """
    entry = ConverterEntry(str, signature=ConversionSignature(int, str))
    assert entry.kind is BindingKind.FUNCTION
    assert entry.invoke(6) == "6"

    with raises(MalformedEntryError) as exc_info:
        ConverterEntry(str)
    assert _cause_types(exc_info) == [InvalidParameterTypeError]


def test_not_callable():
    """
    Test passing something which can't be invoked.
    """
    with raises(MalformedEntryError) as exc_info:
        ConverterEntry(42)  # type: ignore
    assert _cause_types(exc_info) == [InaccessibleFunctionError]


def test_null_owner():
    """
    Test instance method without an instance.
    """
    with raises(MalformedEntryError) as exc_info:
        ConverterEntry(Formatter.format_float)
    assert _cause_types(exc_info) == [NullOwnerError]


def test_owner_incompatible():
    """
    Test owner which isn't an instance of the declaring class.
    """
    with raises(MalformedEntryError) as exc_info:
        ConverterEntry(Formatter.format_float, OtherFormatter())
    assert _cause_types(exc_info) == [OwnerIncompatibilityError]

    cause = exc_info.value.causes[0]
    assert isinstance(cause, OwnerIncompatibilityError)
    assert cause.declaring_class is Formatter

    # free function with an owner
    with raises(MalformedEntryError) as exc_info:
        ConverterEntry(format_int, Formatter())
    assert _cause_types(exc_info) == [OwnerIncompatibilityError]


def test_inaccessible():
    """
    Test private functions and owner types.
    """
    with raises(MalformedEntryError) as exc_info:
        ConverterEntry(_private_function)
    assert _cause_types(exc_info) == [InaccessibleFunctionError]

    with raises(MalformedEntryError) as exc_info:
        ConverterEntry(Formatter()._hidden)
    assert _cause_types(exc_info) == [InaccessibleFunctionError]

    with raises(MalformedEntryError) as exc_info:
        ConverterEntry(_PrivateFormatter().format)
    assert _cause_types(exc_info) == [InaccessibleOwnerTypeError]


def test_wrong_parameter_count():
    """
    Test functions not taking exactly one positional parameter.
    """
    with raises(MalformedEntryError) as exc_info:
        ConverterEntry(Formatter().format_pair)
    assert _cause_types(exc_info) == [WrongParameterCountError]

    cause = exc_info.value.causes[0]
    assert isinstance(cause, WrongParameterCountError)
    assert cause.count == 2

    with raises(MalformedEntryError) as exc_info:
        ConverterEntry(Formatter().format_keyword)
    assert _cause_types(exc_info) == [WrongParameterCountError]


def test_invalid_types():
    """
    Test missing, unsupported or "no value" annotations.
    """
    with raises(MalformedEntryError) as exc_info:
        ConverterEntry(Formatter().discard)
    assert _cause_types(exc_info) == [InvalidReturnTypeError]

    with raises(MalformedEntryError) as exc_info:
        ConverterEntry(Formatter().unannotated)
    assert _cause_types(exc_info) == [InvalidParameterTypeError, InvalidReturnTypeError]

    with raises(MalformedEntryError) as exc_info:
        ConverterEntry(generic_function)
    assert _cause_types(exc_info) == [InvalidParameterTypeError]


def test_all_causes():
    """
    Test that every problem is reported at once.
    """
    with raises(MalformedEntryError) as exc_info:
        ConverterEntry(Formatter._broken)

    assert _cause_types(exc_info) == [
        InaccessibleFunctionError,
        NullOwnerError,
        WrongParameterCountError,
        InvalidParameterTypeError,
        InvalidReturnTypeError,
    ]
    assert "Errors occurred during converter entry validation" in str(exc_info.value)


def test_invoke_error():
    """
    Test that failures of the underlying function are wrapped.
    """
    entry = ConverterEntry(parse_int)

    with raises(InvocationError) as exc_info:
        entry.invoke("not a number")

    assert exc_info.value.entry is entry
    assert isinstance(exc_info.value.cause, ValueError)
    assert exc_info.value.__cause__ is exc_info.value.cause


def test_equality():
    """
    Test equality by function and owner.
    """
    formatter = Formatter()

    assert ConverterEntry(formatter.format_float) == ConverterEntry(
        formatter.format_float
    )
    assert hash(ConverterEntry(formatter.format_float)) == hash(
        ConverterEntry(formatter.format_float)
    )
    assert ConverterEntry(formatter.format_float) != ConverterEntry(
        Formatter().format_float
    )
    assert ConverterEntry(format_int) != ConverterEntry(Formatter.format_int)
    assert ConverterEntry(format_int) != format_int


def test_repr():
    """
    Test rendering.
    """
    entry = ConverterEntry(format_int)
    assert repr(entry) == "ConverterEntry(format_int(builtins.int) -> builtins.str)"

    entry = ConverterEntry(Formatter().format_float)
    assert "Formatter.format_float(builtins.float) -> builtins.str" in repr(entry)
