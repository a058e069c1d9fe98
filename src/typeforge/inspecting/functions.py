"""
Utilities to inspect functions.
"""

from __future__ import annotations

import inspect
import sys
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, auto
from inspect import Parameter
from types import MappingProxyType
from typing import Any, get_type_hints

from .generics import extract_arg_map, substitute_type_vars

__all__ = [
    "BindingKind",
    "ParameterInfo",
    "SignatureInfo",
    "find_declaring_class",
    "get_binding_kind",
]


class BindingKind(Enum):
    """
    How a function is invoked relative to its owner.
    """

    FUNCTION = auto()
    """
    Free function, not declared on a class.
    """

    STATIC = auto()
    """
    Static method, invoked without an owner.
    """

    INSTANCE = auto()
    """
    Instance method, owner passed as first argument.
    """

    CLASS = auto()
    """
    Class method, owner class passed as first argument.
    """

    @property
    def takes_owner(self) -> bool:
        return self in (BindingKind.INSTANCE, BindingKind.CLASS)


@dataclass
class ParameterInfo:
    """
    Encapsulates information about a function parameter.
    """

    parameter: Parameter
    """
    Parameter from `inspect` module.
    """

    annotation: Any | None
    """
    Annotation as extracted by `get_type_hints()`, with type variables resolved
    against the owner if possible; `None` if not annotated.
    """


class SignatureInfo:
    """
    Encapsulates information extracted from a function signature, excluding the
    receiver parameter of instance and class methods.
    """

    func: Callable[..., Any]
    """
    Function passed in.
    """

    kind: BindingKind
    """
    How the function is bound to its owner.
    """

    declaring_class: type | None
    """
    Class on which the function is declared, if any.
    """

    params: MappingProxyType[str, ParameterInfo]
    """
    Mapping of parameter name to info.
    """

    return_annotation: Any | None
    """
    Return annotation, `None` if missing. A function annotated as returning `None`
    has `NoneType` here.
    """

    def __init__(self, func: Callable[..., Any], /, *, owner: Any = None):
        self.func = func
        self.declaring_class = find_declaring_class(func, owner)
        self.kind = get_binding_kind(func, self.declaring_class)

        # get type hints to handle stringized annotations
        try:
            type_hints = get_type_hints(func, include_extras=True)
        except (NameError, AttributeError, TypeError) as e:
            raise ValueError(
                f"Failed to resolve type hints for {func.__qualname__}: {e}"
            ) from e

        # resolve type variables bound by the owner's class
        if arg_map := self.__get_arg_map(owner):
            type_hints = {
                k: substitute_type_vars(v, arg_map) for k, v in type_hints.items()
            }

        self.return_annotation = type_hints.get("return")

        sig = inspect.signature(func)
        parameters = list(sig.parameters.values())
        # bound methods already exclude the receiver
        if self.kind.takes_owner and parameters and not inspect.ismethod(func):
            parameters = parameters[1:]

        self.params = MappingProxyType(
            {p.name: ParameterInfo(p, type_hints.get(p.name)) for p in parameters}
        )

    def __repr__(self) -> str:
        params = ", ".join(
            f"{name}: {_annotation_name(p.annotation)}"
            for name, p in self.params.items()
        )
        return "{}({}) -> {}".format(
            self.func.__qualname__, params, _annotation_name(self.return_annotation)
        )

    def get_params(self, *, positional: bool | None = None) -> list[ParameterInfo]:
        """
        Get parameters, optionally filtered by whether they may be passed
        positionally.
        """
        if positional is None:
            return list(self.params.values())
        kinds = (Parameter.POSITIONAL_ONLY, Parameter.POSITIONAL_OR_KEYWORD)
        return [
            p for p in self.params.values() if (p.parameter.kind in kinds) == positional
        ]

    def __get_arg_map(self, owner: Any) -> dict[str, Any]:
        if owner is None or self.declaring_class is None:
            return {}
        owner_cls = owner if isinstance(owner, type) else type(owner)
        try:
            return extract_arg_map(owner_cls, self.declaring_class)
        except TypeError:
            return {}


def find_declaring_class(func: Callable[..., Any], owner: Any = None, /) -> type | None:
    """
    Find the class on which the function is declared: first by searching the owner's
    MRO, then by resolving the function's qualified name in its module. Returns
    `None` for free functions and functions local to another function.
    """
    name = getattr(func, "__name__", None)
    if name is None:
        return None

    if owner is not None:
        owner_cls = owner if isinstance(owner, type) else type(owner)
        for cls in owner_cls.__mro__:
            attr = cls.__dict__.get(name)
            if attr is func or getattr(attr, "__func__", None) is func:
                return cls

    return _resolve_qualname(func)


def get_binding_kind(
    func: Callable[..., Any], declaring_class: type | None, /
) -> BindingKind:
    """
    Determine how the function is bound, based on how it's stored on its declaring
    class.
    """
    if declaring_class is None:
        return BindingKind.FUNCTION

    attr = inspect.getattr_static(declaring_class, func.__name__, None)
    if isinstance(attr, staticmethod):
        return BindingKind.STATIC
    if isinstance(attr, classmethod):
        return BindingKind.CLASS
    return BindingKind.INSTANCE


def _resolve_qualname(func: Callable[..., Any]) -> type | None:
    qualname = getattr(func, "__qualname__", "")
    parts = qualname.split(".")
    if len(parts) < 2 or "<locals>" in parts:
        return None

    module = sys.modules.get(getattr(func, "__module__", None) or "")
    obj: Any = module
    for part in parts[:-1]:
        obj = getattr(obj, part, None)
        if obj is None:
            return None

    return obj if isinstance(obj, type) else None


def _annotation_name(annotation: Any) -> str:
    if annotation is None:
        return "?"
    return getattr(annotation, "__name__", None) or str(annotation)
