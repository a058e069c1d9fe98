"""
Utilities to resolve type parameters through a generic class hierarchy.

Used to map a subclass's type arguments onto a base class's parameters, e.g.
`class IntConverter(Converter[int])` binds `Converter`'s `T` to `int`.
"""

from __future__ import annotations

from typing import Any, TypeVar, cast, get_args, get_origin

from ._utils import safe_issubclass

__all__ = [
    "extract_args",
    "extract_arg_map",
    "substitute_type_vars",
]

type _ArgList = list[Any | tuple[str, Any]]


def extract_args(cls: Any, base_cls: type) -> tuple[Any, ...]:
    """
    Extract from `cls` the type arguments that were passed to `base_cls`.

    Arguments which are still unresolved are returned as their `TypeVar`.

    :param cls: Class or parameterized alias to extract arguments from
    :param base_cls: Base class whose arguments should be extracted
    :raises TypeError: If `base_cls` is not in `cls`'s inheritance hierarchy
    :return: Tuple of resolved types or unresolved `TypeVar`s
    """
    args = _find_args(cls, base_cls)
    if args is None:
        raise TypeError(
            f"Base class {base_cls} not found in {cls}'s inheritance hierarchy"
        )
    return tuple(a[1] if isinstance(a, tuple) else a for a in args)


def extract_arg_map(cls: Any, base_cls: type, /) -> dict[str, Any]:
    """
    Extract from `cls` a mapping of `base_cls`'s type parameter names to the
    arguments that were passed for them.

    :raises TypeError: If `base_cls` is not in `cls`'s inheritance hierarchy
    """
    args = _find_args(cls, base_cls)
    if args is None:
        raise TypeError(
            f"Base class {base_cls} not found in {cls}'s inheritance hierarchy"
        )
    return {a[0]: a[1] for a in args if isinstance(a, tuple)}


def substitute_type_vars(annotation: Any, arg_map: dict[str, Any], /) -> Any:
    """
    Replace type variables in the annotation using a name -> type mapping. Type
    variables with no mapping are left in place.
    """
    if isinstance(annotation, TypeVar):
        resolved = arg_map.get(annotation.__name__, annotation)
        return resolved

    params = cast(tuple[Any, ...], getattr(annotation, "__parameters__", ()))
    if not params or get_origin(annotation) is None:
        return annotation

    return annotation[
        tuple(substitute_type_vars(p, arg_map) for p in params)
    ]


def _find_args(
    cls: Any, base_cls: type, type_var_map: dict[TypeVar, Any] | None = None
) -> _ArgList | None:
    tv_map = type_var_map if type_var_map is not None else {}
    origin, args = get_origin(cls), get_args(cls)

    # cls is directly base_cls: its parameters are unresolved
    if cls is base_cls and origin is None:
        return [(t.__name__, t) for t in _get_parameters(base_cls)]

    # base_cls may be an ABC not literally in the hierarchy, but still compatible
    # via issubclass
    check_origin = origin if isinstance(origin, type) else cls
    needs_abc_fallback = (
        isinstance(check_origin, type)
        and base_cls not in check_origin.__mro__
        and safe_issubclass(check_origin, base_cls)
    )

    if isinstance(origin, type):
        tv_map = _update_type_var_map(tv_map, _get_parameters(origin), args)

    if origin is base_cls:
        return _build_args_list(_get_parameters(base_cls), args, tv_map)

    # recurse into bases, preferring the parameterized ones
    base_check = origin if isinstance(origin, type) else cls
    bases = [
        *getattr(base_check, "__orig_bases__", ()),
        *getattr(base_check, "__bases__", ()),
    ]
    for base in bases:
        if (result := _find_args(base, base_cls, tv_map)) is not None:
            return result

    # ABC fallback: args of cls correspond to the parameters of base_cls
    if needs_abc_fallback and args:
        return _build_args_list(_get_parameters(base_cls), args, tv_map)

    return None


def _get_parameters(cls: type) -> tuple[TypeVar, ...]:
    parameters = cast(tuple[Any, ...], getattr(cls, "__parameters__", ()))
    return tuple(p for p in parameters if isinstance(p, TypeVar))


def _build_args_list(
    type_params: tuple[TypeVar, ...],
    args: tuple[Any, ...],
    tv_map: dict[TypeVar, Any],
) -> _ArgList:
    """
    Build an args list from type parameters and arguments, resolving type
    variables through the substitution map.
    """
    args_list: _ArgList = []

    if type_params and len(type_params) == len(args):
        for type_param, arg in zip(type_params, args):
            args_list.append((type_param.__name__, _resolve_type_var(arg, tv_map)))
    else:
        # builtin-style: no named parameters, just positional args
        for arg in args:
            resolved = _resolve_type_var(arg, tv_map)
            if isinstance(arg, TypeVar):
                args_list.append((arg.__name__, resolved))
            else:
                args_list.append(resolved)

    return args_list


def _resolve_type_var(arg: Any, tv_map: dict[TypeVar, Any]) -> Any:
    return tv_map.get(arg, arg) if isinstance(arg, TypeVar) else arg


def _update_type_var_map(
    tv_map: dict[TypeVar, Any],
    type_params: tuple[TypeVar, ...],
    args: tuple[Any, ...],
) -> dict[TypeVar, Any]:
    if not type_params or not args:
        return tv_map

    new_tv_map = tv_map.copy()
    for type_param, arg in zip(type_params, args):
        if isinstance(arg, TypeVar):
            # chain substitutions
            if arg in tv_map:
                new_tv_map[type_param] = tv_map[arg]
        else:
            new_tv_map[type_param] = arg
    return new_tv_map
