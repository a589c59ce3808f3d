# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.
"""QLinearMatMul: quantized matrix product."""

from __future__ import annotations

from onnxlower._context import OutputVector, TranslationContext
from onnxlower._record import OperatorRecord
from onnxlower._registry import register
from onnxlower.ops import matmul, quantization


@register("QLinearMatMul")
def qlinear_matmul(node: OperatorRecord, op: TranslationContext) -> OutputVector:
    """Dequantize both operands, multiply in floating point and quantize the product.

    Inputs: a, a_scale, a_zero_point, b, b_scale, b_zero_point, y_scale, y_zero_point.
    The a and b parameters must hold a single element. y_scale and
    y_zero_point are passed to the quantization unchanged and may be per column.
    Only the quantized product is returned.
    """
    a = node.input(0)
    a_scale = op.interpret_as_scalar(node.input(1))
    a_zero_point = op.interpret_as_scalar(node.input(2))
    b = node.input(3)
    b_scale = op.interpret_as_scalar(node.input(4))
    b_zero_point = op.interpret_as_scalar(node.input(5))
    y_scale = node.input(6)
    y_zero_point = node.input(7)

    (dequantized_a,) = quantization.dequantize_linear(op, a, a_scale, a_zero_point)
    (dequantized_b,) = quantization.dequantize_linear(op, b, b_scale, b_zero_point)
    (product,) = matmul.matmul(op, dequantized_a, dequantized_b)
    return quantization.quantize_linear(op, product, y_scale, y_zero_point)
