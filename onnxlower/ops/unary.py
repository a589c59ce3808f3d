# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.
"""Unary elementwise operators."""

from __future__ import annotations

import onnx_ir as ir

from onnxlower._context import OutputVector, TranslationContext
from onnxlower._record import OperatorRecord
from onnxlower._registry import register


def _elementwise(
    record: OperatorRecord,
    context: TranslationContext,
    op_type: str,
    dtype: ir.DataType | None = None,
) -> OutputVector:
    x = record.input(0)
    result = getattr(context, op_type)(x)
    context.set_type_and_shape(result, dtype or x.dtype, x.shape)
    return [result]


@register("Asin")
def asin(node: OperatorRecord, op: TranslationContext) -> OutputVector:
    return _elementwise(node, op, "Asin")


@register("Cosh")
def cosh(node: OperatorRecord, op: TranslationContext) -> OutputVector:
    return _elementwise(node, op, "Cosh")


@register("Tan")
def tan(node: OperatorRecord, op: TranslationContext) -> OutputVector:
    return _elementwise(node, op, "Tan")


@register("IsNaN")
def is_nan(node: OperatorRecord, op: TranslationContext) -> OutputVector:
    return _elementwise(node, op, "IsNaN", ir.DataType.BOOL)
