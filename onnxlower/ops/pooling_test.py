# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.
from __future__ import annotations

import unittest
from unittest import mock

import numpy as np
import onnx_ir as ir
import parameterized

import onnxlower
from onnxlower import errors, testing
from onnxlower._context import TranslationContext, is_null
from onnxlower.ops import pooling

_WINDOW_MAX = [[[[5.0, 7.0], [13.0, 15.0]]]]


class MaxPoolTest(unittest.TestCase):
    def test_version_1_ignores_indices(self):
        op = TranslationContext()
        x = testing.value("x", shape=[1, 1, 4, 4])
        record = testing.record(
            "MaxPool", [x], {"kernel_shape": [2, 2], "strides": [2, 2]}, num_outputs=2
        )
        with self.assertLogs("onnxlower.ops.pooling", level="WARNING") as cm:
            outputs = onnxlower.translate(record, op)

        self.assertIn("MaxPool: Indices output is not supported and was ignored", cm.output[0])
        self.assertEqual(len(outputs), 2)
        self.assertTrue(is_null(outputs[1]))
        result = outputs[0]
        self.assertEqual(result.shape, ir.Shape([1, 1, 2, 2]))
        self.assertEqual(len(result.producer().outputs), 1)
        data = np.arange(16, dtype=np.float32).reshape(1, 1, 4, 4)
        (actual,) = testing.run(op, [x], [result], [data])
        np.testing.assert_allclose(actual, _WINDOW_MAX)

    def test_version_1_single_output_does_not_warn(self):
        op = TranslationContext()
        x = testing.value("x", shape=[1, 1, 4, 4])
        record = testing.record("MaxPool", [x], {"kernel_shape": [2, 2]})
        with mock.patch.object(pooling.logger, "warning") as warning:
            outputs = onnxlower.translate(record, op)
        warning.assert_not_called()
        self.assertEqual(outputs[0].shape, ir.Shape([1, 1, 3, 3]))

    def test_version_8_produces_indices(self):
        op = TranslationContext()
        x = testing.value("x", shape=[1, 1, 4, 4])
        record = testing.record(
            "MaxPool",
            [x],
            {"kernel_shape": [2, 2], "strides": [2, 2]},
            version=8,
            num_outputs=2,
        )
        result, indices = onnxlower.translate(record, op)

        self.assertEqual(indices.dtype, ir.DataType.INT64)
        self.assertEqual(indices.shape, ir.Shape([1, 1, 2, 2]))
        self.assertEqual(result.producer().attributes["storage_order"].value, 0)
        data = np.arange(16, dtype=np.float32).reshape(1, 1, 4, 4)
        actual, actual_indices = testing.run(op, [x], [result, indices], [data])
        np.testing.assert_allclose(actual, _WINDOW_MAX)
        np.testing.assert_array_equal(actual_indices, [[[[5, 7], [13, 15]]]])

    @parameterized.parameterized.expand(
        [
            ("same_upper", "SAME_UPPER", [0, 0, 1, 1]),
            ("same_lower", "SAME_LOWER", [1, 1, 0, 0]),
            ("valid", "VALID", [0, 0, 0, 0]),
        ]
    )
    def test_auto_pad_is_resolved_for_static_shapes(self, _: str, auto_pad: str, pads):
        op = TranslationContext()
        x = testing.value("x", shape=[1, 1, 5, 5])
        record = testing.record(
            "MaxPool", [x], {"kernel_shape": [2, 2], "auto_pad": auto_pad}, version=8
        )
        result, _ = onnxlower.translate(record, op)

        node = result.producer()
        self.assertEqual(list(node.attributes["pads"].value), pads)
        self.assertNotIn("auto_pad", node.attributes)
        expected_extent = 4 if auto_pad == "VALID" else 5
        self.assertEqual(result.shape, ir.Shape([1, 1, expected_extent, expected_extent]))

    def test_auto_pad_is_passed_through_for_dynamic_shapes(self):
        op = TranslationContext()
        x = testing.value("x", shape=[1, 1, "H", "W"])
        record = testing.record(
            "MaxPool", [x], {"kernel_shape": [2, 2], "auto_pad": "SAME_UPPER"}, version=8
        )
        result, _ = onnxlower.translate(record, op)

        node = result.producer()
        self.assertEqual(node.attributes["auto_pad"].value, "SAME_UPPER")
        self.assertNotIn("pads", node.attributes)
        self.assertIsNone(result.shape)

    @parameterized.parameterized.expand([("floor", 0, 2), ("ceil", 1, 3)])
    def test_ceil_mode_output_shape(self, _: str, ceil_mode: int, extent: int):
        op = TranslationContext()
        x = testing.value("x", shape=[1, 1, 5, 5])
        record = testing.record(
            "MaxPool",
            [x],
            {"kernel_shape": [2, 2], "strides": [2, 2], "ceil_mode": ceil_mode},
            version=10,
        )
        result, _ = onnxlower.translate(record, op)
        self.assertEqual(result.shape, ir.Shape([1, 1, extent, extent]))

        data = np.arange(25, dtype=np.float32).reshape(1, 1, 5, 5)
        (actual,) = testing.run(op, [x], [result], [data])
        self.assertEqual(actual.shape, (1, 1, extent, extent))

    def test_kernel_shape_is_required(self):
        record = testing.record("MaxPool", [testing.value("x", shape=[1, 1, 4, 4])])
        with self.assertRaises(errors.MissingAttributeError) as cm:
            onnxlower.translate(record, TranslationContext())
        self.assertEqual(cm.exception.name, "kernel_shape")

    @parameterized.parameterized.expand(
        [
            ("rank", [1, 4, 4], {}),
            ("strides", [1, 1, 4, 4], {"strides": [1]}),
            ("dilations", [1, 1, 4, 4], {"dilations": [1, 1, 1]}),
            ("pads", [1, 1, 4, 4], {"pads": [0, 0]}),
        ]
    )
    def test_inconsistent_attributes(self, _: str, shape, attributes):
        x = testing.value("x", shape=shape)
        record = testing.record("MaxPool", [x], {"kernel_shape": [2, 2], **attributes})
        with self.assertRaises(errors.ShapeMismatchError):
            onnxlower.translate(record, TranslationContext())

    def test_unknown_auto_pad(self):
        x = testing.value("x", shape=[1, 1, 4, 4])
        record = testing.record("MaxPool", [x], {"kernel_shape": [2, 2], "auto_pad": "FULL"})
        with self.assertRaisesRegex(errors.TranslationError, "auto_pad"):
            onnxlower.translate(record, TranslationContext())


class AveragePoolTest(unittest.TestCase):
    def test_average_pool(self):
        op = TranslationContext()
        x = testing.value("x", shape=[1, 1, 4, 4])
        record = testing.record(
            "AveragePool", [x], {"kernel_shape": [2, 2], "strides": [2, 2]}, version=7
        )
        (result,) = onnxlower.translate(record, op)

        self.assertEqual(result.shape, ir.Shape([1, 1, 2, 2]))
        data = np.arange(16, dtype=np.float32).reshape(1, 1, 4, 4)
        (actual,) = testing.run(op, [x], [result], [data])
        np.testing.assert_allclose(actual, [[[[2.5, 4.5], [10.5, 12.5]]]])

    def test_version_7_keeps_count_include_pad(self):
        op = TranslationContext()
        x = testing.value("x", shape=[1, 1, 2, 2])
        record = testing.record(
            "AveragePool",
            [x],
            {"kernel_shape": [2, 2], "pads": [1, 1, 1, 1], "count_include_pad": 1},
            version=7,
        )
        (result,) = onnxlower.translate(record, op)

        self.assertEqual(result.producer().attributes["count_include_pad"].value, 1)
        data = np.full((1, 1, 2, 2), 4.0, dtype=np.float32)
        (actual,) = testing.run(op, [x], [result], [data])
        np.testing.assert_allclose(actual, [[[[1.0, 2.0, 1.0], [2.0, 4.0, 2.0], [1.0, 2.0, 1.0]]]])

    def test_version_1_excludes_padding(self):
        op = TranslationContext()
        x = testing.value("x", shape=[1, 1, 2, 2])
        record = testing.record(
            "AveragePool",
            [x],
            {"kernel_shape": [2, 2], "pads": [1, 1, 1, 1], "count_include_pad": 1},
            version=1,
        )
        (result,) = onnxlower.translate(record, op)

        self.assertEqual(result.producer().attributes["count_include_pad"].value, 0)
        data = np.full((1, 1, 2, 2), 4.0, dtype=np.float32)
        (actual,) = testing.run(op, [x], [result], [data])
        np.testing.assert_allclose(actual, np.full((1, 1, 3, 3), 4.0))


if __name__ == "__main__":
    unittest.main()
