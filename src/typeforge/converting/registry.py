"""
Registries mapping exact conversion signatures to converter entries.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from logging import getLogger

from ..exceptions import ConverterCollisionError, SignatureMismatchError
from .entry import ConverterEntry
from .signature import ConversionSignature

__all__ = [
    "ConverterRegistry",
    "DependentConverterRegistry",
    "check_mapping_for_collision",
]

logger = getLogger(__name__)


class ConverterRegistry(Mapping[ConversionSignature, ConverterEntry]):
    """
    Mutable mapping of signature to entry, enforcing that each signature is claimed
    by at most one entry and that each entry is able to serve the signature it's
    stored under.

    Read access follows the `Mapping` interface; mutation goes through `put()` and
    friends so every insertion is checked.
    """

    _entries: dict[ConversionSignature, ConverterEntry]
    """
    Underlying storage, in insertion order.
    """

    def __init__(
        self, entries: Mapping[ConversionSignature, ConverterEntry] | None = None
    ):
        self._entries = {}
        if entries:
            self.put_all(entries)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._entries})"

    def __getitem__(self, signature: ConversionSignature) -> ConverterEntry:
        return self._entries[signature]

    def __iter__(self) -> Iterator[ConversionSignature]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def put(
        self, signature: ConversionSignature, entry: ConverterEntry
    ) -> ConverterEntry | None:
        """
        Store the entry under the signature.

        Storing an entry equal to the one already present is redundant and leaves the
        registry untouched.

        :raises ValueError: If either argument is `None`
        :raises ConverterCollisionError: If a different entry has the signature
        :raises SignatureMismatchError: If the signature doesn't accept the entry's
            extracted signature
        :return: Entry previously stored under the signature, if any
        """
        self.__check_args(signature, entry)

        existing = self.check_for_collision(signature, entry)
        if existing is not None:
            return existing

        if not signature.is_assignable_from_extracted(entry.extracted_signature):
            raise SignatureMismatchError(signature, entry)

        self._entries[signature] = entry
        logger.debug("Registered %s for %s", entry, signature)
        return None

    def put_all(self, entries: Mapping[ConversionSignature, ConverterEntry]):
        """
        Store all entries, or none of them: every pair is checked before anything is
        inserted.

        :raises ConverterCollisionError: On the first colliding pair, including two
            pairs of the batch colliding with each other
        :raises SignatureMismatchError: On the first mismatching pair
        """
        staged: dict[ConversionSignature, ConverterEntry] = {}
        for signature, entry in entries.items():
            self.__check_args(signature, entry)
            if self.check_for_collision(signature, entry) is not None:
                continue
            if check_mapping_for_collision(signature, entry, staged) is not None:
                continue
            if not signature.is_assignable_from_extracted(entry.extracted_signature):
                raise SignatureMismatchError(signature, entry)
            staged[signature] = entry

        self._entries.update(staged)
        for signature, entry in staged.items():
            logger.debug("Registered %s for %s", entry, signature)

    def remove(self, signature: ConversionSignature | None) -> ConverterEntry | None:
        """
        Remove the entry stored under the signature, returning it. Removing a missing
        or `None` signature does nothing.
        """
        if signature is None:
            return None
        entry = self._entries.pop(signature, None)
        if entry is not None:
            logger.debug("Unregistered %s for %s", entry, signature)
        return entry

    def clear(self):
        self._entries.clear()

    def check_for_collision(
        self, signature: ConversionSignature, entry: ConverterEntry
    ) -> ConverterEntry | None:
        """
        Check whether storing the entry under the signature would collide with this
        registry's contents.

        :raises ConverterCollisionError: If a different entry has the signature
        :return: The equal entry already stored, if any
        """
        return check_mapping_for_collision(signature, entry, self._entries)

    def __check_args(self, signature: ConversionSignature, entry: ConverterEntry):
        if signature is None:
            raise ValueError("Signature must not be None")
        if entry is None:
            raise ValueError("Entry must not be None")


class DependentConverterRegistry(ConverterRegistry):
    """
    Registry which additionally treats the contents of a master mapping as occupied,
    without copying them. Used to stage a batch against a live registry.
    """

    master: Mapping[ConversionSignature, ConverterEntry]
    """
    Mapping checked for collisions alongside this registry's own entries.
    """

    def __init__(
        self,
        master: Mapping[ConversionSignature, ConverterEntry],
        entries: Mapping[ConversionSignature, ConverterEntry] | None = None,
    ):
        if master is None:
            raise ValueError("Master must not be None")
        self.master = master
        super().__init__(entries)

    def check_for_collision(
        self, signature: ConversionSignature, entry: ConverterEntry
    ) -> ConverterEntry | None:
        existing = check_mapping_for_collision(signature, entry, self.master)
        if existing is not None:
            return existing
        return super().check_for_collision(signature, entry)


def check_mapping_for_collision(
    signature: ConversionSignature,
    entry: ConverterEntry,
    mapping: Mapping[ConversionSignature, ConverterEntry],
) -> ConverterEntry | None:
    """
    Check the entry against whatever the mapping stores under the signature.

    :raises ConverterCollisionError: If a different entry is stored there
    :return: The stored entry if it's equal to the given one, else `None`
    """
    existing = mapping.get(signature)
    if existing is None:
        return None
    if existing == entry:
        return existing
    raise ConverterCollisionError(signature, entry, existing)
