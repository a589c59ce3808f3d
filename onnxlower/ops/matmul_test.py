# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.
from __future__ import annotations

import unittest

import numpy as np
import onnx_ir as ir

import onnxlower
from onnxlower import testing
from onnxlower._context import TranslationContext


class MatMulTest(unittest.TestCase):
    def test_matmul_2d(self):
        op = TranslationContext()
        a = testing.value("a", shape=[2, 3])
        b = testing.value("b", shape=[3, 4])
        (result,) = onnxlower.translate(testing.record("MatMul", [a, b]), op)

        self.assertEqual(result.shape, ir.Shape([2, 4]))
        self.assertEqual(result.dtype, ir.DataType.FLOAT)
        a_data = np.arange(6, dtype=np.float32).reshape(2, 3)
        b_data = np.arange(12, dtype=np.float32).reshape(3, 4)
        (actual,) = testing.run(op, [a, b], [result], [a_data, b_data])
        np.testing.assert_allclose(actual, a_data @ b_data)

    def test_batched_matmul_shape_is_not_inferred(self):
        op = TranslationContext()
        a = testing.value("a", shape=[5, 2, 3])
        b = testing.value("b", shape=[3, 4])
        (result,) = onnxlower.translate(testing.record("MatMul", [a, b]), op)

        self.assertIsNone(result.shape)
        a_data = np.ones((5, 2, 3), dtype=np.float32)
        b_data = np.ones((3, 4), dtype=np.float32)
        (actual,) = testing.run(op, [a, b], [result], [a_data, b_data])
        np.testing.assert_allclose(actual, np.full((5, 2, 4), 3.0))

    def test_missing_second_operand(self):
        record = testing.record("MatMul", [testing.value("a"), None])
        with self.assertRaises(onnxlower.MissingInputError) as cm:
            onnxlower.translate(record, TranslationContext())
        self.assertEqual(cm.exception.index, 1)


if __name__ == "__main__":
    unittest.main()
