# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.
"""Matrix product."""

from __future__ import annotations

import onnx_ir as ir

from onnxlower._context import OutputVector, TranslationContext
from onnxlower._record import OperatorRecord
from onnxlower._registry import register


def _matmul_shape(a: ir.Value, b: ir.Value) -> list | None:
    # Only the plain 2-D case is inferred
    if a.shape is None or b.shape is None or a.shape.rank() != 2 or b.shape.rank() != 2:
        return None
    return [a.shape[0], b.shape[1]]


def matmul(op: TranslationContext, a: ir.Value, b: ir.Value) -> OutputVector:
    """Emit the product of two values that are already in the target graph."""
    result = op.MatMul(a, b)
    op.set_type_and_shape(result, a.dtype, _matmul_shape(a, b))
    return [result]


@register("MatMul")
def mat_mul(node: OperatorRecord, op: TranslationContext) -> OutputVector:
    return matmul(op, node.input(0), node.input(1))
