# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.
"""Shared constants."""

from __future__ import annotations

import onnx_ir as ir

# Opset version of the standard domain that emitted nodes are written against.
TARGET_OPSET = 21
# Lowest IR version that can carry TARGET_OPSET.
TARGET_IR_VERSION = 10

# Domain for target operators with no standard ONNX counterpart.
EXTENSION_DOMAIN = "pkg.onnxlower"
EXTENSION_OPSET = 1

# Element type used when an emitted constant has no type to follow.
DEFAULT_DTYPE = ir.DataType.FLOAT

# RandomUniform seed policy: the float seed attribute is scaled and truncated
# to an unsigned 64-bit operator seed. The global seed is fixed.
RANDOM_GLOBAL_SEED = 0
RANDOM_SEED_SCALE = 1000

# Metadata key written on emitted nodes when source annotation is enabled.
SOURCE_METADATA_KEY = "pkg.onnxlower.source"
