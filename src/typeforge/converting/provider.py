"""
Discovery of converters exposed by arbitrary objects.

The default provider recognizes functions and methods marked with `@converts`:

```python
class TextConverters:
    @converts
    def from_float(self, value: float) -> str:
        return f"{value:.2f}"

    @staticmethod
    @converts(source=list[str])
    def join(value: list) -> str:
        return ",".join(value)
```
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from types import ModuleType
from typing import Any, Protocol, overload, runtime_checkable

from ..exceptions import ProviderError, TypeforgeError
from ._types import Notification
from .entry import ConverterEntry
from .signature import ConversionSignature

__all__ = [
    "Provider",
    "ConverterMarker",
    "MarkedMethodProvider",
    "converts",
    "get_marker",
]

MARKER_ATTR = "__typeforge_converter__"


@runtime_checkable
class Provider(Protocol):
    """
    Exposes the converters of an object as (signature, entry) pairs.
    """

    def provide(
        self, obj: Any, /
    ) -> Iterable[tuple[ConversionSignature, ConverterEntry]]: ...


@dataclass(frozen=True)
class ConverterMarker:
    """
    Marker attached to a converter function, optionally overriding the types
    extracted from its annotations.
    """

    source: Any | None = None
    target: Any | None = None

    @property
    def is_explicit(self) -> bool:
        return self.source is not None and self.target is not None


@overload
def converts[FuncT: Callable[..., Any]](func: FuncT, /) -> FuncT: ...


@overload
def converts[FuncT: Callable[..., Any]](
    *, source: Any | None = None, target: Any | None = None
) -> Callable[[FuncT], FuncT]: ...


def converts(
    func: Any = None, /, *, source: Any | None = None, target: Any | None = None
) -> Any:
    """
    Mark a function, method or class as a converter. Usable bare or with
    `source`/`target` overriding the annotated types.
    """

    def decorator(func_: Any) -> Any:
        inner = (
            func_.__func__ if isinstance(func_, (staticmethod, classmethod)) else func_
        )
        setattr(inner, MARKER_ATTR, ConverterMarker(source, target))
        return func_

    if func is not None:
        return decorator(func)
    return decorator


def get_marker(obj: Any, /) -> ConverterMarker | None:
    """
    Get the converter marker of a function, method or class, if marked.
    """
    if isinstance(obj, (staticmethod, classmethod)) or inspect.ismethod(obj):
        obj = obj.__func__
    if isinstance(obj, type):
        # not inherited from a marked base
        marker = obj.__dict__.get(MARKER_ATTR)
    else:
        marker = getattr(obj, MARKER_ATTR, None)
    return marker if isinstance(marker, ConverterMarker) else None


class MarkedMethodProvider:
    """
    Provider which scans objects for `@converts`-marked callables:

    - Module: marked functions and classes defined in it
    - Class: marked static and class methods; marked instance methods are
      reported since there's no instance to invoke them on
    - Instance: marked methods of its class, bound to it
    - Marked function or bound method: itself

    Pairs are yielded as they're found; problems are collected and raised together
    as a `ProviderError` once the object has been fully scanned.
    """

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    def provide(
        self, obj: Any, /
    ) -> Iterator[tuple[ConversionSignature, ConverterEntry]]:
        notification = Notification()

        for func, owner, marker in self.__find_marked(obj):
            try:
                yield _create_pair(func, owner, marker)
            except (TypeforgeError, ValueError) as e:
                notification.report(e)

        notification.raise_if_errors(ProviderError)

    def __find_marked(
        self, obj: Any
    ) -> Iterator[tuple[Any, Any | None, ConverterMarker]]:
        if obj is None:
            return

        if isinstance(obj, ModuleType):
            for value in vars(obj).values():
                if getattr(value, "__module__", None) != obj.__name__:
                    continue
                if (marker := get_marker(value)) is not None:
                    yield value, None, marker
            return

        if isinstance(obj, type):
            yield from _find_marked_members(obj, None)
            return

        if inspect.isroutine(obj):
            if (marker := get_marker(obj)) is not None:
                yield obj, None, marker
            return

        yield from _find_marked_members(type(obj), obj)


def _find_marked_members(
    cls: type, instance: Any | None
) -> Iterator[tuple[Any, Any | None, ConverterMarker]]:
    """
    Find marked members of the class, most-derived first, with the owner each one
    should be invoked on.
    """
    seen: set[str] = set()
    for base in cls.__mro__:
        for name, attr in base.__dict__.items():
            if name in seen:
                continue
            seen.add(name)

            marker = get_marker(attr)
            if marker is None:
                continue

            if isinstance(attr, staticmethod):
                yield attr.__func__, None, marker
            elif isinstance(attr, classmethod):
                yield attr.__func__, cls, marker
            elif inspect.isfunction(attr):
                yield attr, instance, marker


def _create_pair(
    func: Any, owner: Any | None, marker: ConverterMarker
) -> tuple[ConversionSignature, ConverterEntry]:
    if marker.is_explicit:
        signature = ConversionSignature(marker.source, marker.target)
        return signature, ConverterEntry(func, owner, signature=signature)

    entry = ConverterEntry(func, owner)
    if marker.source is None and marker.target is None:
        return entry.signature, entry

    signature = ConversionSignature(
        marker.source if marker.source is not None else entry.signature.source,
        marker.target if marker.target is not None else entry.signature.target,
    )
    return signature, entry
