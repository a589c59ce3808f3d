# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.
"""Translate versioned ONNX operators into nodes of the ONNX IR."""

__all__ = [
    # Modules
    "errors",
    "ops",
    # Records and attributes
    "AttributeBag",
    "OperatorRecord",
    # Registry
    "Registry",
    "VersionedImplementation",
    "default_registry",
    "register",
    # Construction
    "NullOutput",
    "OutputVector",
    "TranslationContext",
    "is_null",
    # Translation
    "GraphTranslator",
    "translate",
    "translate_graph",
    "translate_model",
    # Errors
    "TranslationError",
    "MissingInputError",
    "MissingAttributeError",
    "AttributeTypeError",
    "ShapeMismatchError",
    "UnsupportedOpcodeError",
    "UnsupportedVersionError",
    "DuplicateVersionError",
]

from onnxlower import errors, ops
from onnxlower._attributes import AttributeBag
from onnxlower._context import NullOutput, OutputVector, TranslationContext, is_null
from onnxlower._record import OperatorRecord
from onnxlower._registry import Registry, VersionedImplementation, default_registry, register
from onnxlower._translator import GraphTranslator, translate, translate_graph, translate_model
from onnxlower.errors import (
    AttributeTypeError,
    DuplicateVersionError,
    MissingAttributeError,
    MissingInputError,
    ShapeMismatchError,
    TranslationError,
    UnsupportedOpcodeError,
    UnsupportedVersionError,
)
