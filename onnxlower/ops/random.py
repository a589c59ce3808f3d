# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.
"""Random number generators."""

from __future__ import annotations

import math

import numpy as np
import onnx_ir as ir

from onnxlower import _constants, errors
from onnxlower._context import OutputVector, TranslationContext
from onnxlower._record import OperatorRecord
from onnxlower._registry import register

_UINT64_MODULUS = 1 << 64
_INT64_MAX = (1 << 63) - 1


def seed_to_op_seed(seed: float) -> int:
    """Convert the float seed attribute to the unsigned 64-bit operator seed.

    The seed is multiplied by RANDOM_SEED_SCALE in float32 and truncated toward
    zero; negative results wrap around. The conversion loses precision, e.g.
    seeds closer than 0.001 apart may map to the same operator seed.
    """
    if not math.isfinite(seed):
        raise errors.TranslationError(f"The seed attribute must be finite, got {seed}.")
    scaled = np.float32(seed) * np.float32(_constants.RANDOM_SEED_SCALE)
    return int(scaled) % _UINT64_MODULUS


def _as_int64_bits(value: int) -> int:
    # INT attributes are signed; keep the bit pattern of the unsigned seed
    return value - _UINT64_MODULUS if value > _INT64_MAX else value


@register("RandomUniform")
def random_uniform(node: OperatorRecord, op: TranslationContext) -> OutputVector:
    if "shape" not in node.attributes:
        raise errors.MissingAttributeError(
            "shape", "RandomUniform operator must specify a 'shape' attribute."
        )
    shape = node.attributes.get_ints("shape")
    dtype_value = node.attributes.get_int("dtype", int(ir.DataType.FLOAT))
    try:
        dtype = ir.DataType(dtype_value)
    except ValueError:
        raise errors.TranslationError(
            f"Attribute 'dtype' value {dtype_value} is not a valid tensor element type."
        ) from None
    seed = node.attributes.get_float("seed", 0.0)

    target_shape = op.constant(np.asarray(shape, dtype=np.int64))
    low = op.attribute_as_constant(node, "low", 0.0, dtype, attr_type=ir.AttributeType.FLOAT)
    high = op.attribute_as_constant(node, "high", 1.0, dtype, attr_type=ir.AttributeType.FLOAT)
    result = op.RandomUniform(
        target_shape,
        low,
        high,
        dtype=int(dtype),
        global_seed=_constants.RANDOM_GLOBAL_SEED,
        op_seed=_as_int64_bits(seed_to_op_seed(seed)),
        _domain=_constants.EXTENSION_DOMAIN,
        _version=_constants.EXTENSION_OPSET,
    )
    op.set_type_and_shape(result, dtype, shape)
    return [result]
