"""
Types used throughout subpackage.
"""

from __future__ import annotations

from typing import NoReturn

from ..exceptions import MultipleCausesError

__all__ = [
    "Notification",
]


class Notification:
    """
    Collects errors found while checking a batch so they can be raised together.
    """

    errors: list[Exception]
    """
    Errors reported so far, bundles flattened into their causes.
    """

    def __init__(self):
        self.errors = []

    def __repr__(self) -> str:
        return f"{type(self).__name__}(errors={self.errors})"

    def __bool__(self) -> bool:
        return self.has_errors

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def report(self, error: Exception, /):
        """
        Add an error, unpacking it into its causes if it's a bundle.
        """
        if isinstance(error, MultipleCausesError):
            self.errors += error.causes
        else:
            self.errors.append(error)

    def raise_errors(self, error_cls: type[MultipleCausesError], /) -> NoReturn:
        """
        Raise all collected errors as a single bundle.
        """
        assert self.has_errors
        raise error_cls(self.errors)

    def raise_if_errors(self, error_cls: type[MultipleCausesError], /):
        if self.has_errors:
            self.raise_errors(error_cls)
