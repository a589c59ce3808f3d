# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.
"""Pooling operators."""

from __future__ import annotations

import logging

from onnxlower._context import OutputVector, TranslationContext
from onnxlower._record import OperatorRecord
from onnxlower._registry import register
from onnxlower.ops._pooling import PoolingFactory

logger = logging.getLogger(__name__)


@register("MaxPool", since_version=1)
def max_pool_1(node: OperatorRecord, op: TranslationContext) -> OutputVector:
    """MaxPool without indices. The indices position holds a NullOutput."""
    if node.num_outputs > 1:
        logger.warning("MaxPool: Indices output is not supported and was ignored")
    outputs = PoolingFactory(node, op).make_max_pool()
    outputs.append(op.null())
    return outputs


@register("MaxPool", since_version=8)
def max_pool_8(node: OperatorRecord, op: TranslationContext) -> OutputVector:
    return PoolingFactory(node, op).make_max_pool_with_indices()


@register("AveragePool", since_version=1)
def average_pool_1(node: OperatorRecord, op: TranslationContext) -> OutputVector:
    # count_include_pad was introduced in version 7
    return PoolingFactory(node, op, count_include_pad=False).make_avg_pool()


@register("AveragePool", since_version=7)
def average_pool_7(node: OperatorRecord, op: TranslationContext) -> OutputVector:
    return PoolingFactory(node, op).make_avg_pool()
