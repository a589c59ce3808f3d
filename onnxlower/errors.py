# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.
"""Errors raised while translating operators."""

from __future__ import annotations

__all__ = [
    "TranslationError",
    "MissingInputError",
    "MissingAttributeError",
    "AttributeTypeError",
    "ShapeMismatchError",
    "UnsupportedOpcodeError",
    "UnsupportedVersionError",
    "DuplicateVersionError",
]

from typing import Optional


def _display_domain(domain: str) -> str:
    return domain or "ai.onnx"


class TranslationError(RuntimeError):
    """Base class of all translation failures.

    Attributes:
        message: The failure description without location.
        domain: Domain of the operator being translated, when known.
        op_type: Opcode of the operator being translated, when known.
        version: Opset version the operator was resolved against, when known.
        node_name: Name of the source node, when known.
    """

    def __init__(
        self,
        message: str,
        *,
        domain: Optional[str] = None,
        op_type: Optional[str] = None,
        version: Optional[int] = None,
        node_name: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.domain = domain
        self.op_type = op_type
        self.version = version
        self.node_name = node_name

    def attach(
        self,
        *,
        domain: str,
        op_type: str,
        version: int,
        node_name: Optional[str] = None,
    ) -> TranslationError:
        """Fill in the location fields that are not set yet and return self."""
        if self.domain is None:
            self.domain = domain
        if self.op_type is None:
            self.op_type = op_type
        if self.version is None:
            self.version = version
        if self.node_name is None:
            self.node_name = node_name
        return self

    @property
    def location(self) -> str:
        if self.op_type is None:
            return ""
        location = f"{_display_domain(self.domain or '')}::{self.op_type}"
        if self.version is not None:
            location += f"@{self.version}"
        if self.node_name:
            location += f" (node '{self.node_name}')"
        return location

    def __str__(self) -> str:
        location = self.location
        if not location:
            return self.message
        return f"[{location}] {self.message}"


class MissingInputError(TranslationError):
    """A required input is absent."""

    def __init__(self, index: int, message: Optional[str] = None, **kwargs) -> None:
        if message is None:
            message = f"Required input {index} is missing."
        super().__init__(message, **kwargs)
        self.index = index


class MissingAttributeError(TranslationError):
    """A required attribute is absent."""

    def __init__(self, name: str, message: Optional[str] = None, **kwargs) -> None:
        if message is None:
            message = f"Required attribute '{name}' is missing."
        super().__init__(message, **kwargs)
        self.name = name


class AttributeTypeError(TranslationError, TypeError):
    """An attribute is present but holds a value of a different kind."""

    def __init__(self, name: str, expected, actual, **kwargs) -> None:
        expected_name = getattr(expected, "name", str(expected))
        actual_name = getattr(actual, "name", str(actual))
        super().__init__(
            f"Attribute '{name}' is expected to be {expected_name}, got {actual_name}.",
            **kwargs,
        )
        self.name = name
        self.expected = expected
        self.actual = actual


class ShapeMismatchError(TranslationError, ValueError):
    """An input or attribute dimension is inconsistent with another."""


class UnsupportedOpcodeError(TranslationError):
    """No implementation is registered for a (domain, op_type)."""

    def __init__(self, domain: str, op_type: str) -> None:
        super().__init__(
            f"No translator is registered for {_display_domain(domain)}::{op_type}.",
        )
        self.requested_domain = domain
        self.requested_op_type = op_type


class UnsupportedVersionError(TranslationError):
    """Implementations exist but none supports the requested version."""

    def __init__(self, domain: str, op_type: str, version: int, since_version: int) -> None:
        super().__init__(
            f"{_display_domain(domain)}::{op_type} is supported since version {since_version}, "
            f"but version {version} was requested.",
        )
        self.requested_version = version
        self.since_version = since_version


class DuplicateVersionError(TranslationError):
    """An implementation is already registered for the same version."""

    def __init__(self, domain: str, op_type: str, version: int) -> None:
        super().__init__(
            f"A translator for {_display_domain(domain)}::{op_type} "
            f"since version {version} is already registered.",
        )
        self.registered_version = version
