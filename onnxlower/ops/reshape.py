# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.
"""Reshape and Slice."""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
import onnx_ir as ir

from onnxlower import errors
from onnxlower._context import OutputVector, TranslationContext
from onnxlower._record import OperatorRecord
from onnxlower._registry import register


def _static_reshape(data: ir.Value, shape: Sequence[int]) -> Optional[list[int]]:
    """Shape of reshaping ``data`` to ``shape`` when it is fully known."""
    if data.shape is None or not data.shape.is_static():
        return None
    dims = data.shape.numpy()
    if any(dim == 0 and i >= len(dims) for i, dim in enumerate(shape)):
        return None
    size = int(np.prod(dims))
    target = [dims[i] if dim == 0 else dim for i, dim in enumerate(shape)]
    if target.count(-1) > 1:
        return None
    if -1 in target:
        known = int(np.prod([dim for dim in target if dim != -1]))
        if known == 0 or size % known != 0:
            return None
        target[target.index(-1)] = size // known
    return target


@register("Reshape", since_version=1)
def reshape_1(node: OperatorRecord, op: TranslationContext) -> OutputVector:
    """Reshape with the target shape given by the ``shape`` attribute."""
    data = node.input(0)
    shape = node.attributes.get_ints("shape")
    result = op.Reshape(data, op.constant(np.asarray(shape, dtype=np.int64)))
    op.set_type_and_shape(result, data.dtype, _static_reshape(data, shape))
    return [result]


@register("Reshape", since_version=5)
def reshape_5(node: OperatorRecord, op: TranslationContext) -> OutputVector:
    data = node.input(0)
    result = op.Reshape(data, node.input(1))
    op.set_type_and_shape(result, data.dtype, None)
    return [result]


@register("Reshape", since_version=14)
def reshape_14(node: OperatorRecord, op: TranslationContext) -> OutputVector:
    data = node.input(0)
    allowzero = node.attributes.get_int("allowzero", 0)
    result = op.Reshape(data, node.input(1), allowzero=allowzero or None)
    op.set_type_and_shape(result, data.dtype, None)
    return [result]


@register("Slice", since_version=1)
def slice_1(node: OperatorRecord, op: TranslationContext) -> OutputVector:
    """Slice with starts, ends and axes given as attributes."""
    data = node.input(0)
    starts = node.attributes.get_ints("starts")
    ends = node.attributes.get_ints("ends")
    if len(starts) != len(ends):
        raise errors.ShapeMismatchError(
            f"Slice has {len(starts)} starts but {len(ends)} ends."
        )
    inputs = [
        data,
        op.constant(np.asarray(starts, dtype=np.int64)),
        op.constant(np.asarray(ends, dtype=np.int64)),
    ]
    axes = node.attributes.get_ints("axes", None)
    if axes is not None:
        if len(axes) != len(starts):
            raise errors.ShapeMismatchError(
                f"Slice has {len(axes)} axes but {len(starts)} starts."
            )
        inputs.append(op.constant(np.asarray(axes, dtype=np.int64)))
    result = op.Slice(*inputs)
    op.set_type_and_shape(result, data.dtype, None)
    return [result]


@register("Slice", since_version=10)
def slice_10(node: OperatorRecord, op: TranslationContext) -> OutputVector:
    """Slice with starts, ends and the optional axes and steps given as inputs."""
    data = node.input(0)
    inputs: list[Optional[ir.Value]] = [data, node.input(1), node.input(2)]
    inputs.extend(node.inputs[3:5])
    while inputs[-1] is None:
        inputs.pop()
    result = op.Slice(*inputs)
    op.set_type_and_shape(result, data.dtype, None)
    return [result]
