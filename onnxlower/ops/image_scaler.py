# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.
"""ImageScaler: per-channel affine transform of NCHW images."""

from __future__ import annotations

import numpy as np
import onnx_ir as ir

from onnxlower import errors
from onnxlower._context import OutputVector, TranslationContext
from onnxlower._record import OperatorRecord
from onnxlower._registry import register


@register("ImageScaler")
def image_scaler(node: OperatorRecord, op: TranslationContext) -> OutputVector:
    """Lower ImageScaler to ``x * scale + bias``, with bias shaped [1, C, 1, 1]."""
    node.check_input_count(1)
    x = node.input(0)
    if x.shape is None or x.shape.rank() != 4:
        raise errors.ShapeMismatchError(
            f"ImageScaler expects a 4D tensor in NCHW format. Got: {x.shape}"
        )

    bias = node.attributes.get_floats("bias")
    num_channels = x.shape[1]
    # A symbolic channel dimension cannot be checked here; the bias Add fails at
    # run time when it does not broadcast
    if isinstance(num_channels, int) and num_channels != len(bias):
        raise errors.ShapeMismatchError(
            f"Number of bias attribute elements: {len(bias)} "
            f"does not match the channel dimension: {num_channels}"
        )

    dtype = op.dtype_of(x)
    scale = op.attribute_as_constant(
        node, "scale", 1.0, dtype, attr_type=ir.AttributeType.FLOAT
    )
    bias_const = op.constant(np.asarray(bias, dtype=np.float64), dtype, shape=[1, len(bias), 1, 1])
    result = op.Add(op.Mul(x, scale), bias_const)
    op.set_type_and_shape(result, dtype, x.shape)
    return [result]
