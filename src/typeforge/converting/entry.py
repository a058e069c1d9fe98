"""
Converter entries: validated bindings of a conversion function to its signature.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import Any, TypeVar

from ..exceptions import (
    InaccessibleFunctionError,
    InaccessibleOwnerTypeError,
    InvalidParameterTypeError,
    InvalidReturnTypeError,
    InvocationError,
    MalformedEntryError,
    NullOwnerError,
    OwnerIncompatibilityError,
    UnsupportedAnnotationError,
    WrongParameterCountError,
)
from ..inspecting._utils import is_private_name
from ..inspecting.descriptors import TypeDescriptor, describe
from ..inspecting.functions import (
    BindingKind,
    SignatureInfo,
    find_declaring_class,
    get_binding_kind,
)
from ._types import Notification
from .signature import ConversionSignature

__all__ = [
    "ConverterEntry",
]


class ConverterEntry:
    """
    Immutable binding of a function, and the owner it's invoked on, to the signature
    of the conversion it performs.

    The signature is extracted from the function's annotations unless one is passed
    explicitly, which is required for classes and for callables without
    annotations. Construction fails with a `MalformedEntryError` bundling every
    problem found.

    Entries are equal if they wrap the same function on equal owners.
    """

    func: Callable[..., Any]
    """
    Underlying function, unbound.
    """

    owner: Any | None
    """
    Instance (or class, for class methods) the function is invoked on; `None` for
    free functions and static methods.
    """

    kind: BindingKind
    """
    How the function is bound to its owner.
    """

    signature: ConversionSignature
    """
    Signature of this entry: the one passed in, or else the extracted one.
    """

    extracted_signature: ConversionSignature
    """
    Signature derived from the callable's annotations. Where the callable can't be
    inspected or an annotation is missing, the corresponding part of `signature`
    is used.
    """

    __sig_info: SignatureInfo | None = None
    """
    Inspected signature of the function, if it could be inspected.
    """

    def __init__(
        self,
        func: Callable[..., Any],
        owner: Any | None = None,
        *,
        signature: ConversionSignature | None = None,
    ):
        func, owner = _unbind(func, owner)
        notification = Notification()

        self.func = func
        self.owner = owner

        if not callable(func):
            notification.report(InaccessibleFunctionError(func, "not callable"))
            notification.raise_errors(MalformedEntryError)

        self.kind = self.__check_binding(notification)
        source: TypeDescriptor | None = None
        target: TypeDescriptor | None = None

        if isinstance(func, type):
            # constructor: annotations belong to the class, not the call
            if signature is None:
                notification.report(
                    InvalidParameterTypeError(func, "classes require a signature")
                )
        else:
            try:
                self.__sig_info = SignatureInfo(func, owner=owner)
            except (ValueError, TypeError) as e:
                if signature is None:
                    notification.report(InvalidParameterTypeError(func, str(e)))
            else:
                # missing annotations are only errors without a signature
                required = signature is None
                self.__check_arity(notification)
                source = self.__extract_source(notification, required)
                target = self.__extract_target(notification, required)
                if required and source is not None and target is not None:
                    signature = ConversionSignature(source, target)

        notification.raise_if_errors(MalformedEntryError)
        assert signature is not None
        self.signature = signature
        self.extracted_signature = ConversionSignature(
            source if source is not None else signature.source,
            target if target is not None else signature.target,
        )

    def __repr__(self) -> str:
        name = getattr(self.func, "__qualname__", None) or repr(self.func)
        desc = f"{name}({self.signature.source}) -> {self.signature.target}"
        if self.owner is None:
            return f"{type(self).__name__}({desc})"
        return f"{type(self).__name__}({self.owner!r}: {desc})"

    def __eq__(self, other: Any, /) -> bool:
        if self is other:
            return True
        if not isinstance(other, ConverterEntry):
            return NotImplemented
        return self.func == other.func and self.owner == other.owner

    def __hash__(self) -> int:
        # owners may be unhashable; equal entries always share the function
        return hash(self.func)

    def invoke(self, value: Any, /) -> Any:
        """
        Invoke the function on the value, wrapping any failure in `InvocationError`.
        """
        try:
            if self.kind.takes_owner:
                return self.func(self.owner, value)
            return self.func(value)
        except Exception as e:
            raise InvocationError(self, e) from e

    def __check_binding(self, notification: Notification) -> BindingKind:
        """
        Check the function is public and can be invoked on the owner, if any.
        """
        func, owner = self.func, self.owner

        if is_private_name(getattr(func, "__name__", "")):
            notification.report(InaccessibleFunctionError(func))

        declaring_class = (
            None if isinstance(func, type) else find_declaring_class(func, owner)
        )
        kind = get_binding_kind(func, declaring_class)

        if owner is None:
            if kind.takes_owner:
                notification.report(NullOwnerError(func))
            return kind

        owner_cls = owner if isinstance(owner, type) else type(owner)
        if is_private_name(owner_cls.__name__):
            notification.report(InaccessibleOwnerTypeError(func, owner))

        if declaring_class is None or not _owner_matches(owner, declaring_class, kind):
            notification.report(OwnerIncompatibilityError(func, owner, declaring_class))

        return kind

    def __check_arity(self, notification: Notification):
        assert self.__sig_info
        params = self.__sig_info.get_params()
        positional = self.__sig_info.get_params(positional=True)
        if len(params) != 1 or len(positional) != 1:
            count = len(params) if len(params) != 1 else len(positional)
            notification.report(WrongParameterCountError(self.func, count))

    def __extract_source(
        self, notification: Notification, required: bool
    ) -> TypeDescriptor | None:
        """
        Extract the parameter type. Missing or unsupported annotations are only
        reported if `required`; a parameter of no value is always reported.
        """
        assert self.__sig_info
        positional = self.__sig_info.get_params(positional=True)
        if not positional:
            # reported as wrong parameter count
            return None

        param = positional[0]
        if param.annotation is None:
            if required:
                notification.report(
                    InvalidParameterTypeError(
                        self.func, f"parameter '{param.parameter.name}' not annotated"
                    )
                )
            return None

        try:
            source = _describe_resolved(param.annotation)
        except UnsupportedAnnotationError as e:
            if required:
                notification.report(InvalidParameterTypeError(self.func, str(e)))
            return None

        if source.is_no_value:
            notification.report(
                InvalidParameterTypeError(self.func, "accepts no value")
            )
            return None
        return source

    def __extract_target(
        self, notification: Notification, required: bool
    ) -> TypeDescriptor | None:
        """
        Extract the return type. Missing or unsupported annotations are only
        reported if `required`; returning no value is always reported.
        """
        assert self.__sig_info
        annotation = self.__sig_info.return_annotation
        if annotation is None:
            if required:
                notification.report(InvalidReturnTypeError(self.func, "not annotated"))
            return None

        try:
            target = _describe_resolved(annotation)
        except UnsupportedAnnotationError as e:
            if required:
                notification.report(InvalidReturnTypeError(self.func, str(e)))
            return None

        if target.is_no_value:
            notification.report(InvalidReturnTypeError(self.func, "returns no value"))
            return None
        return target


def _unbind(func: Any, owner: Any | None) -> tuple[Any, Any | None]:
    """
    Split bound methods, including a callable object's `__call__`, into function and
    owner. An explicitly passed owner takes precedence so mismatches get reported.
    """
    if (
        callable(func)
        and not inspect.isroutine(func)
        and not isinstance(func, type)
        and inspect.ismethod(getattr(func, "__call__", None))
    ):
        func = func.__call__

    if inspect.ismethod(func):
        return func.__func__, owner if owner is not None else func.__self__

    return func, owner


def _owner_matches(owner: Any, declaring_class: type, kind: BindingKind) -> bool:
    if isinstance(owner, type) and kind is not BindingKind.INSTANCE:
        # class and static methods may be bound to the class itself
        return issubclass(owner, declaring_class)
    return isinstance(owner, declaring_class)


def _describe_resolved(annotation: Any) -> TypeDescriptor:
    """
    Describe a parameter or return annotation; a type variable at the top level
    means the function is generic, which can't be used as a converter.
    """
    if isinstance(annotation, TypeVar):
        raise UnsupportedAnnotationError(annotation, "generic function")
    return describe(annotation)
