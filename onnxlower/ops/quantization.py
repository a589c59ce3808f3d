# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.
"""Linear quantization operators.

Dequantization is lowered to ``(Cast(x) - Cast(zero_point)) * scale``.
Quantization maps onto the target ``QuantizeLinear`` operator.
"""

from __future__ import annotations

from typing import Optional

import onnx_ir as ir

from onnxlower import errors
from onnxlower._context import OutputVector, TranslationContext
from onnxlower._record import OperatorRecord
from onnxlower._registry import register


def _broadcast_along_axis(
    op: TranslationContext, x: ir.Value, param: ir.Value, axis: int
) -> ir.Value:
    """Reshape a 1-D per-axis parameter so that it broadcasts against ``x`` on ``axis``."""
    if param.shape is not None and param.shape.rank() == 0:
        return param
    if x.shape is None:
        raise errors.ShapeMismatchError(
            "Per-axis quantization parameters need an input of known rank."
        )
    rank = x.shape.rank()
    if not -rank <= axis < rank:
        raise errors.ShapeMismatchError(f"Axis {axis} is out of range for rank {rank}.")
    axis = axis % rank
    if param.shape is not None and param.shape.rank() == 1:
        length = param.shape[0]
        extent = x.shape[axis]
        if isinstance(length, int) and isinstance(extent, int) and length not in (1, extent):
            raise errors.ShapeMismatchError(
                f"Quantization parameter of length {length} does not match "
                f"dimension {axis} of size {extent}."
            )
    target_shape = [1] * rank
    target_shape[axis] = -1
    reshaped = op.Reshape(param, op.constant(target_shape))
    op.set_type_and_shape(reshaped, param.dtype, None)
    return reshaped


def dequantize_linear(
    op: TranslationContext,
    x: ir.Value,
    scale: ir.Value,
    zero_point: Optional[ir.Value],
    axis: Optional[int] = None,
) -> OutputVector:
    """Emit ``(x - zero_point) * scale`` in the element type of ``scale``.

    Args:
        op: The construction context.
        x: The quantized input.
        scale: Scalar scale, or a 1-D per-axis scale when ``axis`` is given.
        zero_point: Zero point of the same shape as ``scale``, or None for zero.
        axis: Axis of ``x`` the 1-D parameters apply to.
    """
    dtype = op.dtype_of(scale)
    if axis is not None:
        scale = _broadcast_along_axis(op, x, scale, axis)
        if zero_point is not None:
            zero_point = _broadcast_along_axis(op, x, zero_point, axis)
    result = op.Cast(x, to=int(dtype))
    if zero_point is not None:
        result = op.Sub(result, op.Cast(zero_point, to=int(dtype)))
    result = op.Mul(result, scale)
    op.set_type_and_shape(result, dtype, x.shape)
    return [result]


def quantize_linear(
    op: TranslationContext,
    x: ir.Value,
    scale: ir.Value,
    zero_point: Optional[ir.Value],
    axis: Optional[int] = None,
) -> OutputVector:
    """Emit the target QuantizeLinear. The result has the zero point's type, UINT8 without one."""
    inputs = [x, scale] if zero_point is None else [x, scale, zero_point]
    result = op.QuantizeLinear(*inputs, axis=axis)
    op.set_type_and_shape(result, op.dtype_of(zero_point, ir.DataType.UINT8), x.shape)
    return [result]


@register("DequantizeLinear", since_version=10)
def dequantize_linear_10(node: OperatorRecord, op: TranslationContext) -> OutputVector:
    x = node.input(0)
    scale = op.interpret_as_scalar(node.input(1))
    zero_point = node.optional_input(2)
    if zero_point is not None:
        zero_point = op.interpret_as_scalar(zero_point)
    return dequantize_linear(op, x, scale, zero_point)


@register("DequantizeLinear", since_version=13)
def dequantize_linear_13(node: OperatorRecord, op: TranslationContext) -> OutputVector:
    x = node.input(0)
    scale = node.input(1)
    zero_point = node.optional_input(2)
    axis = node.attributes.get_int("axis", 1)
    if scale.shape is not None and scale.shape.rank() == 0:
        return dequantize_linear(op, x, scale, zero_point)
    return dequantize_linear(op, x, scale, zero_point, axis)


@register("QuantizeLinear", since_version=10)
def quantize_linear_10(node: OperatorRecord, op: TranslationContext) -> OutputVector:
    x = node.input(0)
    scale = op.interpret_as_scalar(node.input(1))
    zero_point = node.optional_input(2)
    if zero_point is not None:
        zero_point = op.interpret_as_scalar(zero_point)
    return quantize_linear(op, x, scale, zero_point)


@register("QuantizeLinear", since_version=13)
def quantize_linear_13(node: OperatorRecord, op: TranslationContext) -> OutputVector:
    x = node.input(0)
    scale = node.input(1)
    zero_point = node.optional_input(2)
    if scale.shape is not None and scale.shape.rank() == 0:
        return quantize_linear(op, x, scale, zero_point)
    return quantize_linear(op, x, scale, zero_point, node.attributes.get_int("axis", 1))
