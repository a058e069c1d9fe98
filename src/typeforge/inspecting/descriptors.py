"""
Reified type descriptors with a structural subtype relation.

A descriptor is an immutable value describing one of:

- `NamedType`: a plain class, e.g. `str`
- `ParameterizedType`: a generic class with type arguments, e.g. `list[str]`
- `ArrayType`: an array of an element type with a number of dimensions
- `PrimitiveType`: an unboxed machine value, e.g. a raw `int`, which is
  interchangeable with its boxed class for subtype checks only

`Wildcard` is only meaningful as a type argument and relaxes argument matching to
"any subtype of" or "any supertype of" a bound.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import NoneType, UnionType
from typing import (
    Annotated,
    Any,
    Literal,
    TypeAliasType,
    TypeVar,
    Union,
    get_args,
    get_origin,
)

from ..exceptions import UnsupportedAnnotationError
from ._utils import qualified_name, safe_issubclass
from .generics import extract_args

__all__ = [
    "Primitive",
    "TypeDescriptor",
    "NamedType",
    "ParameterizedType",
    "ArrayType",
    "PrimitiveType",
    "Wildcard",
    "OBJECT",
    "NO_VALUE",
    "describe",
    "is_subtype",
]


class Primitive(Enum):
    """
    Unboxed value kinds and the Python class each one boxes to.
    """

    BOOL = ("bool", bool)
    INT = ("int", int)
    FLOAT = ("float", float)
    COMPLEX = ("complex", complex)
    BYTE = ("byte", bytes)
    CHAR = ("char", str)

    label: str
    boxed: type

    def __init__(self, label: str, boxed: type):
        self.label = label
        self.boxed = boxed

    @classmethod
    def for_boxed(cls, boxed: type, /) -> Primitive | None:
        """
        Get the primitive boxing to exactly this class, if any.
        """
        return next((p for p in cls if p.boxed is boxed), None)


class TypeDescriptor(ABC):
    """
    Base class for type descriptors. Subclasses are frozen dataclasses, so
    equality and hashing are structural.
    """

    @property
    @abstractmethod
    def concrete_type(self) -> type:
        """
        Class a value of this type is an instance of.
        """

    @property
    def is_no_value(self) -> bool:
        """
        Whether this describes the absence of a value (`None`).
        """
        return False

    def is_subtype(self, other: TypeDescriptor | Any, /) -> bool:
        """
        Check if this type can stand in wherever the other type is expected.

        - Named types follow the class hierarchy
        - Parameterized types additionally require each argument of the other type
          to contain the corresponding argument of this type: an exact argument
          requires equality, a wildcard relaxes this by its bound
        - Arrays require equal dimensions and element subtyping
        - A primitive and its boxed class are interchangeable
        - Everything is a subtype of `object`
        """
        other_desc = describe(other)

        if self == other_desc:
            return True

        if isinstance(other_desc, Wildcard):
            return other_desc.contains(self)

        if other_desc == OBJECT:
            return True

        return self._is_subtype(other_desc)

    @abstractmethod
    def _is_subtype(self, other: TypeDescriptor) -> bool:
        """
        Check subtype relation against a non-equal, non-wildcard, non-object type.
        """


@dataclass(frozen=True)
class NamedType(TypeDescriptor):
    cls: type

    def __post_init__(self):
        if not isinstance(self.cls, type):
            raise TypeError(f"Not a class: {self.cls!r}")

    def __str__(self) -> str:
        return qualified_name(self.cls)

    @property
    def concrete_type(self) -> type:
        return self.cls

    @property
    def is_no_value(self) -> bool:
        return self.cls is NoneType

    def _is_subtype(self, other: TypeDescriptor) -> bool:
        if isinstance(other, PrimitiveType):
            return Primitive.for_boxed(self.cls) is other.primitive

        if isinstance(other, NamedType):
            return safe_issubclass(self.cls, other.cls)

        if isinstance(other, ParameterizedType):
            if not safe_issubclass(self.cls, other.base):
                return False
            # a raw generic class is assignable to any parameterization
            if getattr(self.cls, "__parameters__", ()):
                return True
            my_args = _project_args(self.cls, (), other.base, len(other.args))
            return _args_contained(my_args, other.args)

        return False


@dataclass(frozen=True)
class ParameterizedType(TypeDescriptor):
    base: type
    args: tuple[TypeDescriptor, ...]

    def __post_init__(self):
        if not isinstance(self.base, type):
            raise TypeError(f"Not a class: {self.base!r}")
        if not self.args:
            raise ValueError(f"Parameterized type {self.base} requires arguments")
        object.__setattr__(self, "args", tuple(_describe_arg(a) for a in self.args))

    def __str__(self) -> str:
        return "{}<{}>".format(
            qualified_name(self.base), ", ".join(str(a) for a in self.args)
        )

    @property
    def concrete_type(self) -> type:
        return self.base

    def _is_subtype(self, other: TypeDescriptor) -> bool:
        if isinstance(other, NamedType):
            return safe_issubclass(self.base, other.cls)

        if isinstance(other, ParameterizedType):
            if not safe_issubclass(self.base, other.base):
                return False
            if self.base is other.base:
                return _args_contained(self.args, other.args)
            my_args = _project_args(
                self.base, self.args, other.base, len(other.args)
            )
            return _args_contained(my_args, other.args)

        return False


@dataclass(frozen=True)
class ArrayType(TypeDescriptor):
    element: TypeDescriptor
    dimensions: int = 1

    def __post_init__(self):
        element = describe(self.element)
        dimensions = self.dimensions
        if dimensions < 1:
            raise ValueError(f"Array dimensions must be positive: {dimensions}")
        if isinstance(element, Wildcard):
            raise ValueError("Array element can't be a wildcard")
        # flatten arrays of arrays
        if isinstance(element, ArrayType):
            element, dimensions = element.element, element.dimensions + dimensions
        object.__setattr__(self, "element", element)
        object.__setattr__(self, "dimensions", dimensions)

    def __str__(self) -> str:
        return f"{self.element}{'[]' * self.dimensions}"

    @property
    def concrete_type(self) -> type:
        # arrays are represented by (nested) lists
        return list

    def _is_subtype(self, other: TypeDescriptor) -> bool:
        if not isinstance(other, ArrayType):
            return False
        return (
            self.dimensions == other.dimensions
            and self.element.is_subtype(other.element)
        )


@dataclass(frozen=True)
class PrimitiveType(TypeDescriptor):
    primitive: Primitive

    def __str__(self) -> str:
        return self.primitive.label

    @property
    def concrete_type(self) -> type:
        return self.primitive.boxed

    @property
    def boxed(self) -> NamedType:
        return NamedType(self.primitive.boxed)

    def _is_subtype(self, other: TypeDescriptor) -> bool:
        return isinstance(other, NamedType) and other.cls is self.primitive.boxed


@dataclass(frozen=True)
class Wildcard(TypeDescriptor):
    """
    Type argument standing for an unknown type, optionally bounded:

    - `Wildcard()`: any type
    - `Wildcard(upper=X)`: any subtype of `X`
    - `Wildcard(lower=X)`: any supertype of `X`
    """

    upper: TypeDescriptor | None = None
    lower: TypeDescriptor | None = field(default=None, kw_only=True)

    def __post_init__(self):
        if self.upper is not None and self.lower is not None:
            raise ValueError("Wildcard can't have both upper and lower bounds")
        if self.upper is not None:
            object.__setattr__(self, "upper", describe(self.upper))
        if self.lower is not None:
            object.__setattr__(self, "lower", describe(self.lower))

    def __str__(self) -> str:
        if self.upper is not None:
            return f"? extends {self.upper}"
        if self.lower is not None:
            return f"? super {self.lower}"
        return "?"

    @property
    def concrete_type(self) -> type:
        return self.upper.concrete_type if self.upper is not None else object

    @property
    def upper_bound(self) -> TypeDescriptor:
        return self.upper if self.upper is not None else OBJECT

    def contains(self, arg: TypeDescriptor, /) -> bool:
        """
        Check if the argument is within this wildcard's bounds.
        """
        if isinstance(arg, Wildcard):
            if self.lower is not None:
                return arg.lower is not None and self.lower.is_subtype(arg.lower)
            if arg.lower is not None:
                return self.upper_bound == OBJECT
            return arg.upper_bound.is_subtype(self.upper_bound)

        if self.lower is not None:
            return self.lower.is_subtype(arg)
        return arg.is_subtype(self.upper_bound)

    def _is_subtype(self, other: TypeDescriptor) -> bool:
        return self.upper_bound.is_subtype(other)


OBJECT = NamedType(object)
"""
Descriptor for `object`, the top type.
"""

NO_VALUE = NamedType(NoneType)
"""
Descriptor for the absence of a value.
"""


def describe(annotation: TypeDescriptor | Any, /) -> TypeDescriptor:
    """
    Build a descriptor from an annotation; descriptors are returned as-is.

    - Type aliases and `Annotated[]` are unwrapped
    - `Annotated[int, Primitive.INT]` describes the unboxed primitive
    - `Any` describes `object`; `None` describes the absence of a value
    - `list[str]`-style generic aliases describe parameterized types; `Any` and
      unresolved type variables as arguments become wildcards
    """
    if isinstance(annotation, TypeDescriptor):
        return annotation

    annotation_ = _unwrap_alias(annotation)

    if get_origin(annotation_) is Annotated:
        raw, *extras = get_args(annotation_)
        primitives = [e for e in extras if isinstance(e, Primitive)]
        if not primitives:
            return describe(raw)
        primitive = primitives[0]
        if _unwrap_alias(raw) is not primitive.boxed:
            raise UnsupportedAnnotationError(
                annotation, f"{primitive} must annotate {primitive.boxed.__name__}"
            )
        return PrimitiveType(primitive)

    if annotation_ is Any:
        return OBJECT

    if annotation_ is None:
        return NO_VALUE

    if isinstance(annotation_, Primitive):
        return PrimitiveType(annotation_)

    if isinstance(annotation_, TypeVar):
        raise UnsupportedAnnotationError(annotation, "unresolved type variable")

    origin = get_origin(annotation_)

    if origin is None:
        if isinstance(annotation_, type):
            return NamedType(annotation_)
        raise UnsupportedAnnotationError(annotation, "not a class")

    if origin in (Union, UnionType):
        raise UnsupportedAnnotationError(annotation, "unions are not supported")

    if origin is Literal:
        raise UnsupportedAnnotationError(annotation, "literals are not supported")

    if not isinstance(origin, type):
        raise UnsupportedAnnotationError(annotation, f"unsupported origin {origin}")

    args = get_args(annotation_)
    if not args:
        return NamedType(origin)

    return ParameterizedType(origin, tuple(_describe_arg(a) for a in args))


def is_subtype(annotation: TypeDescriptor | Any, other: TypeDescriptor | Any, /) -> bool:
    """
    Check whether an annotation or descriptor is a subtype of another.

    Example:

    ```python
    assert is_subtype(list[bool], list[Wildcard(int)])
    ```
    """
    return describe(annotation).is_subtype(other)


def _describe_arg(arg: Any) -> TypeDescriptor:
    """
    Describe a type argument: unknowns become wildcards.
    """
    if isinstance(arg, TypeDescriptor):
        return arg
    if arg is Any:
        return Wildcard()
    if isinstance(arg, TypeVar):
        bound = arg.__bound__
        return Wildcard(describe(bound)) if bound is not None else Wildcard()
    if arg is ...:
        raise UnsupportedAnnotationError(arg, "variadic arguments are not supported")
    return describe(arg)


def _unwrap_alias(annotation: Any) -> Any:
    if isinstance(annotation, TypeAliasType):
        return _unwrap_alias(annotation.__value__)
    return annotation


def _project_args(
    cls: type, args: tuple[TypeDescriptor, ...], base: type, arity: int
) -> tuple[TypeDescriptor | None, ...] | None:
    """
    Get the arguments that `cls` parameterized by `args` passes to `base`, which
    takes `arity` arguments. `None` elements are unknown (raw); returns `None` if
    the mapping can't be determined.
    """
    try:
        raw_args = extract_args(cls, base)
    except TypeError:
        # builtins registered as ABC subclasses, e.g. dict and Iterable
        return _project_abc_args(cls, args, base, arity)

    params = getattr(cls, "__parameters__", ())
    arg_map = dict(zip(params, args))

    projected: list[TypeDescriptor | None] = []
    for raw_arg in raw_args:
        if isinstance(raw_arg, TypeVar):
            projected.append(arg_map.get(raw_arg))
        else:
            projected.append(_describe_arg(raw_arg))
    return tuple(projected)


def _project_abc_args(
    cls: type, args: tuple[TypeDescriptor, ...], base: type, arity: int
) -> tuple[TypeDescriptor, ...] | None:
    if not args:
        return None
    if safe_issubclass(cls, Mapping) and not safe_issubclass(base, Mapping):
        # mappings iterate over their keys
        args = args[:1]
    return args if len(args) == arity else None


def _args_contained(
    my_args: tuple[TypeDescriptor | None, ...] | None,
    other_args: tuple[TypeDescriptor, ...],
) -> bool:
    """
    Check if each of the other type's arguments contains the corresponding argument.
    Unknown arguments are accepted unchecked.
    """
    if my_args is None or len(my_args) == 0:
        return True
    if len(my_args) != len(other_args):
        return False
    return all(
        my_arg is None or _arg_contained(my_arg, other_arg)
        for my_arg, other_arg in zip(my_args, other_args)
    )


def _arg_contained(arg: TypeDescriptor, other_arg: TypeDescriptor) -> bool:
    if isinstance(other_arg, Wildcard):
        return other_arg.contains(arg)
    # exact arguments are invariant
    return arg == other_arg
