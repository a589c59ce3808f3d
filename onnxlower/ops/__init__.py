# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.
"""Operator translators.

Importing this package registers every translator in the default registry.
The modules are named after the operator families they translate.
"""

from onnxlower.ops import (  # noqa: F401
    image_scaler,
    matmul,
    pooling,
    qlinear_matmul,
    quantization,
    random,
    reshape,
    unary,
)
