"""
Inspecting utilities.
"""

from typing import Any


def safe_issubclass(cls: type, class_or_tuple: type | tuple[type, ...], /) -> bool:
    """
    `issubclass()` can raise `TypeError` in some cases, even when the arguments are
    types (e.g. protocols with data members); handle it and gracefully return
    `False`.
    """
    # make sure the user passed types; don't want to mask that reason for TypeError
    if not isinstance(cls, type):
        raise TypeError(f"safe_issubclass() arg 1 must be a class: {cls}")
    if (
        isinstance(class_or_tuple, tuple)
        and not all(isinstance(c, type) for c in class_or_tuple)
    ) or not isinstance(class_or_tuple, (type, tuple)):
        raise TypeError(
            f"safe_issubclass() arg 2 must be a class or tuple of classes: {class_or_tuple}"
        )

    try:
        return issubclass(cls, class_or_tuple)
    except TypeError:
        return False


def is_private_name(name: str, /) -> bool:
    """
    Whether the name is private by convention: a single leading underscore, not a
    dunder.
    """
    return name.startswith("_") and not (name.startswith("__") and name.endswith("__"))


def qualified_name(obj: Any, /) -> str:
    """
    Get fully qualified `module.qualname` of a class or function.
    """
    module = getattr(obj, "__module__", None)
    qualname = getattr(obj, "__qualname__", None) or getattr(obj, "__name__", repr(obj))
    return f"{module}.{qualname}" if module else qualname
