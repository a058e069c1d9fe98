"""
Dispatcher: registers converters from provider objects and dispatches conversions to
the one serving a requested signature.
"""

from __future__ import annotations

from logging import getLogger
from types import MappingProxyType
from typing import Any

from .converting._types import Notification
from .converting.entry import ConverterEntry
from .converting.provider import MarkedMethodProvider, Provider
from .converting.registry import ConverterRegistry, DependentConverterRegistry
from .converting.selector import ConverterSelector
from .converting.signature import ConversionSignature
from .exceptions import (
    ConverterRegistrationError,
    InvocationError,
    ProviderError,
    TypeforgeError,
)
from .params import DispatchParams

__all__ = [
    "Dispatcher",
]

logger = getLogger(__name__)


class Dispatcher:
    """
    Facade over a registry of converters.

    Example:

    ```python
    class Formatters:
        @converts
        def format_float(self, value: float) -> str:
            return f"{value:.2f}"

    dispatcher = Dispatcher(Formatters())
    assert dispatcher.convert(1.0, str) == "1.00"
    ```
    """

    params: DispatchParams
    """
    Params controlling resolution and invocation.
    """

    __provider: Provider
    """
    Collaborator exposing converters of registered objects.
    """

    __registry: ConverterRegistry
    """
    Live registry, only ever updated by complete batches.
    """

    __selector: ConverterSelector

    def __init__(
        self,
        *providers: Any,
        params: DispatchParams | None = None,
        provider: Provider | None = None,
    ):
        self.params = params or DispatchParams()
        self.__provider = provider or MarkedMethodProvider()
        self.__registry = ConverterRegistry()
        self.__selector = ConverterSelector(exact_only=self.params.exact_only)

        for obj in providers:
            self.register(obj)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(converters={len(self.__registry)}, "
            f"params={self.params})"
        )

    @property
    def converters(self) -> MappingProxyType[ConversionSignature, ConverterEntry]:
        """
        Read-only view of registered converters.
        """
        return MappingProxyType(self.__registry)

    def register(self, obj: Any, /):
        """
        Register all converters exposed by the object. Either all of them are
        registered or, if any problem is found, none are.

        :raises ConverterRegistrationError: With every problem found
        """
        if obj is None:
            return

        staged = DependentConverterRegistry(self.__registry)
        notification = Notification()

        try:
            for signature, entry in self.__provider.provide(obj):
                try:
                    staged.put(signature, entry)
                except (TypeforgeError, ValueError) as e:
                    notification.report(e)
        except ProviderError as e:
            notification.report(e)

        if notification:
            logger.warning(
                "Rejected converters of %r with %d error(s)",
                obj,
                len(notification.errors),
            )
            notification.raise_errors(ConverterRegistrationError)

        self.__registry.put_all(staged)
        logger.debug("Registered %d converter(s) of %r", len(staged), obj)

    def unregister(
        self, signature: ConversionSignature | Any | None, target: Any | None = None, /
    ) -> ConverterEntry | None:
        """
        Unregister the converter at exactly this signature, or source and target,
        returning it if there was one.
        """
        key = _to_signature(signature, target)
        return self.__registry.remove(key) if key is not None else None

    def is_registered(
        self, signature: ConversionSignature | Any | None, target: Any | None = None, /
    ) -> bool:
        """
        Check if a converter is registered at exactly this signature, or source and
        target.
        """
        key = _to_signature(signature, target)
        return key is not None and key in self.__registry

    def clear(self):
        self.__registry.clear()

    def get_converter(self, signature: ConversionSignature, /) -> ConverterEntry:
        """
        Resolve the converter serving the signature without invoking it.

        :raises NoCompatibleConvertersError: If there's none
        :raises AmbiguousConvertersError: If there's no exact match and more than
            one compatible converter
        """
        return self.__selector.resolve(signature, self.__registry)

    def convert(
        self,
        value: Any,
        target: ConversionSignature | Any,
        /,
        *,
        source: Any | None = None,
    ) -> Any:
        """
        Convert the value to the target type, or using the converter serving the
        signature. The source type defaults to the value's class.

        :raises ResolutionError: If no single converter serves the conversion
        :raises InvocationError: If the converter failed, or its result isn't of the
            target type when `check_result` is set
        """
        if isinstance(target, ConversionSignature):
            if source is not None:
                raise ValueError("Can't pass source along with a signature")
            signature = target
        else:
            signature = ConversionSignature(
                source if source is not None else type(value), target
            )

        entry = self.get_converter(signature)
        result = entry.invoke(value)

        if self.params.check_result:
            target_type = signature.target.concrete_type
            if not isinstance(result, target_type):
                raise InvocationError(
                    entry,
                    TypeError(
                        f"Result {result!r} is not an instance of {signature.target}"
                    ),
                )

        return result


def _to_signature(
    signature: ConversionSignature | Any | None, target: Any | None
) -> ConversionSignature | None:
    """
    Normalize a signature or source/target pair; `None` if either is missing or the
    absence of a value.
    """
    if isinstance(signature, ConversionSignature):
        return signature
    if signature is None or target is None:
        return None
    try:
        return ConversionSignature(signature, target)
    except ValueError:
        return None
