"""
Tests for discovering converters marked with `@converts`.
"""

import sys

from pytest import raises

from typeforge.converting.entry import ConverterEntry
from typeforge.converting.provider import (
    ConverterMarker,
    MarkedMethodProvider,
    Provider,
    converts,
    get_marker,
)
from typeforge.converting.signature import ConversionSignature
from typeforge.exceptions import (
    InvalidReturnTypeError,
    NullOwnerError,
    ProviderError,
    WrongParameterCountError,
)


@converts
def format_int(value: int) -> str:
    return str(value)


@converts(source=bytes, target=str)
def decode(value):
    return value.decode()


@converts(source=float, target=str)
class Label(str):
    pass


def unmarked(value: int) -> str:
    return str(value)


class TextConverters:
    @converts
    def format_float(self, value: float) -> str:
        return f"{value:.1f}"

    @staticmethod
    @converts
    def format_bool(value: bool) -> str:
        return "yes" if value else "no"

    @converts
    @classmethod
    def parse(cls, value: str) -> int:
        return int(value)

    @converts(source=list[str])
    def join(self, value: list) -> str:
        return ",".join(value)

    def unmarked(self, value: int) -> str:
        return str(value)


class ExtendedConverters(TextConverters):
    @converts
    def format_float(self, value: float) -> str:
        return f"{value:.2f}"


class BrokenConverters:
    @converts
    def format_pair(self, a: int, b: int) -> str:
        return f"{a},{b}"

    @converts
    def discard(self, value: int) -> None:
        pass

    @converts
    def format_int(self, value: int) -> str:
        return str(value)


def _provide(obj) -> dict[ConversionSignature, ConverterEntry]:
    return dict(MarkedMethodProvider().provide(obj))


def test_converts():
    """
    Test marking functions, with or without arguments.
    """
    assert get_marker(format_int) == ConverterMarker()
    assert get_marker(decode) == ConverterMarker(bytes, str)
    assert get_marker(decode).is_explicit
    assert not ConverterMarker(source=int).is_explicit
    assert get_marker(unmarked) is None

    # static and class methods, either decorator order
    assert get_marker(TextConverters.__dict__["format_bool"]) == ConverterMarker()
    assert get_marker(TextConverters.__dict__["parse"]) == ConverterMarker()
    assert get_marker(TextConverters.parse) == ConverterMarker()

    # classes
    assert get_marker(Label) == ConverterMarker(float, str)


def test_protocol():
    """
    Test that the default provider implements the protocol.
    """
    assert isinstance(MarkedMethodProvider(), Provider)


def test_instance():
    """
    Test discovering converters of an instance.
    """
    converters = TextConverters()
    pairs = _provide(converters)

    assert list(pairs) == [
        ConversionSignature(float, str),
        ConversionSignature(bool, str),
        ConversionSignature(str, int),
        ConversionSignature(list[str], str),
    ]

    assert pairs[ConversionSignature(float, str)].owner is converters
    assert pairs[ConversionSignature(bool, str)].owner is None
    assert pairs[ConversionSignature(str, int)].owner is TextConverters

    # signature from marker, entry from annotations
    join_entry = pairs[ConversionSignature(list[str], str)]
    assert join_entry.signature == ConversionSignature(list, str)

    assert pairs[ConversionSignature(float, str)].invoke(1.5) == "1.5"
    assert pairs[ConversionSignature(str, int)].invoke("7") == 7


def test_inherited():
    """
    Test that overridden converters are taken from the subclass.
    """
    converters = ExtendedConverters()
    pairs = _provide(converters)

    assert len(pairs) == 4
    entry = pairs[ConversionSignature(float, str)]
    assert entry.func is ExtendedConverters.format_float
    assert entry.invoke(1.5) == "1.50"
    assert pairs[ConversionSignature(str, int)].owner is ExtendedConverters


def test_class():
    """
    Test discovering converters of a class, which has no instance to bind.
    """
    pairs: dict[ConversionSignature, ConverterEntry] = {}
    with raises(ProviderError) as exc_info:
        for signature, entry in MarkedMethodProvider().provide(TextConverters):
            pairs[signature] = entry

    # static and class methods are still provided
    assert list(pairs) == [
        ConversionSignature(bool, str),
        ConversionSignature(str, int),
    ]
    assert [type(c) for c in exc_info.value.causes] == [
        NullOwnerError,
        NullOwnerError,
    ]


def test_functions():
    """
    Test providing marked functions and bound methods directly.
    """
    pairs = _provide(format_int)
    assert list(pairs) == [ConversionSignature(int, str)]

    converters = TextConverters()
    pairs = _provide(converters.format_float)
    entry = pairs[ConversionSignature(float, str)]
    assert entry.owner is converters

    assert _provide(unmarked) == {}
    assert _provide(None) == {}


def test_explicit():
    """
    Test a marker overriding both types of an unannotated function.
    """
    pairs = _provide(decode)
    entry = pairs[ConversionSignature(bytes, str)]
    assert entry.signature == ConversionSignature(bytes, str)
    assert entry.invoke(b"abc") == "abc"


def test_module():
    """
    Test discovering marked functions and classes defined in a module.
    """
    pairs = _provide(sys.modules[__name__])

    assert set(pairs) == {
        ConversionSignature(int, str),
        ConversionSignature(bytes, str),
        ConversionSignature(float, str),
    }
    assert pairs[ConversionSignature(int, str)].func is format_int

    label = pairs[ConversionSignature(float, str)]
    assert label.func is Label
    assert label.invoke(1.5) == "1.5"


def test_errors():
    """
    Test that every problem is reported once the object is scanned.
    """
    pairs: dict[ConversionSignature, ConverterEntry] = {}
    with raises(ProviderError) as exc_info:
        for signature, entry in MarkedMethodProvider().provide(BrokenConverters()):
            pairs[signature] = entry

    assert list(pairs) == [ConversionSignature(int, str)]
    assert [type(c) for c in exc_info.value.causes] == [
        WrongParameterCountError,
        InvalidReturnTypeError,
    ]
    assert "Errors occurred during converter discovery" in str(exc_info.value)
