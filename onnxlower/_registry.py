# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.
"""Registry of versioned operator translators."""

from __future__ import annotations

__all__ = [
    "Registry",
    "TranslatorFunction",
    "VersionedImplementation",
    "default_registry",
    "register",
]

import bisect
import dataclasses
import logging
from typing import TYPE_CHECKING, Callable, Iterator, Optional, Sequence

from typing_extensions import TypeAlias

from onnxlower import _record, errors

if TYPE_CHECKING:
    from onnxlower._context import OutputVector, TranslationContext

logger = logging.getLogger(__name__)

# A translator takes a record and the context of the pass and returns the
# outputs it produced, positionally aligned with the record's outputs.
TranslatorFunction: TypeAlias = Callable[["_record.OperatorRecord", "TranslationContext"], "OutputVector"]


@dataclasses.dataclass(frozen=True)
class VersionedImplementation:
    """A translator for one operator, valid from ``since_version`` onward."""

    domain: str
    op_type: str
    since_version: int
    function: TranslatorFunction

    def __call__(
        self, record: _record.OperatorRecord, context: TranslationContext
    ) -> OutputVector:
        return self.function(record, context)


class Registry:
    """Maps (domain, op_type) to translators ordered by the version they support from.

    The registry is filled once, before translation starts, and only read
    afterwards.
    """

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], list[VersionedImplementation]] = {}

    def register(
        self, domain: str, op_type: str, since_version: int, function: TranslatorFunction
    ) -> VersionedImplementation:
        """Add a translator for ``domain::op_type`` valid from ``since_version``.

        Raises:
            DuplicateVersionError: A translator with the same ``since_version``
                is already registered.
        """
        if since_version < 1:
            raise ValueError(f"since_version must be at least 1, got {since_version}")
        domain = _record.normalize_domain(domain)
        entries = self._entries.setdefault((domain, op_type), [])
        versions = [entry.since_version for entry in entries]
        index = bisect.bisect_left(versions, since_version)
        if index < len(entries) and versions[index] == since_version:
            raise errors.DuplicateVersionError(domain, op_type, since_version)
        implementation = VersionedImplementation(domain, op_type, since_version, function)
        entries.insert(index, implementation)
        return implementation

    def resolve(self, domain: str, op_type: str, version: int) -> VersionedImplementation:
        """Return the translator with the greatest ``since_version <= version``.

        Raises:
            UnsupportedOpcodeError: Nothing is registered for ``domain::op_type``.
            UnsupportedVersionError: Every translator requires a newer version.
        """
        domain = _record.normalize_domain(domain)
        entries = self._entries.get((domain, op_type))
        if not entries:
            raise errors.UnsupportedOpcodeError(domain, op_type)
        index = bisect.bisect_right([entry.since_version for entry in entries], version)
        if index == 0:
            raise errors.UnsupportedVersionError(
                domain, op_type, version, entries[0].since_version
            )
        implementation = entries[index - 1]
        logger.debug(
            "Resolved %s::%s@%d to the translator since version %d",
            domain,
            op_type,
            version,
            implementation.since_version,
        )
        return implementation

    def versions(self, domain: str, op_type: str) -> Sequence[int]:
        """The versions registered for ``domain::op_type``, ascending."""
        entries = self._entries.get((_record.normalize_domain(domain), op_type), [])
        return tuple(entry.since_version for entry in entries)

    def is_supported(self, domain: str, op_type: str, version: int) -> bool:
        try:
            self.resolve(domain, op_type, version)
        except (errors.UnsupportedOpcodeError, errors.UnsupportedVersionError):
            return False
        return True

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        domain, op_type = key
        return (_record.normalize_domain(domain), op_type) in self._entries

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({len(self._entries)} operators)"


# Default registry
default_registry = Registry()


def register(
    op_type: str,
    *,
    domain: str = "",
    since_version: int = 1,
    registry: Optional[Registry] = None,
) -> Callable[[TranslatorFunction], TranslatorFunction]:
    """Register a translator.

    Args:
        op_type: The opcode the translator handles, e.g. "MaxPool".
        domain: Domain of the opcode. "" is the standard ONNX domain.
        since_version: The lowest opset version the translator supports. It
            stays in effect until the next registered version.
        registry: Registry to register the function to. If None, the default
            registry is used.
    """
    if registry is None:
        registry = default_registry

    def decorator(function: TranslatorFunction) -> TranslatorFunction:
        assert registry is not None
        registry.register(domain, op_type, since_version, function)
        return function

    return decorator
