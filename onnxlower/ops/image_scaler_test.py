# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.
from __future__ import annotations

import unittest

import numpy as np
import onnx_ir as ir

import onnxlower
from onnxlower import errors, testing
from onnxlower._context import TranslationContext


class ImageScalerTest(unittest.TestCase):
    def test_scale_and_bias_per_channel(self):
        op = TranslationContext()
        x = testing.value("x", shape=[2, 3, 2, 2])
        record = testing.record("ImageScaler", [x], {"scale": 0.5, "bias": [1.0, 2.0, 3.0]})
        (result,) = onnxlower.translate(record, op)

        self.assertEqual(result.shape, ir.Shape([2, 3, 2, 2]))
        data = np.arange(24, dtype=np.float32).reshape(2, 3, 2, 2)
        (actual,) = testing.run(op, [x], [result], [data])
        bias = np.array([1.0, 2.0, 3.0], dtype=np.float32).reshape(1, 3, 1, 1)
        np.testing.assert_allclose(actual, data * 0.5 + bias)

    def test_scale_defaults_to_one(self):
        op = TranslationContext()
        x = testing.value("x", shape=[1, 2, 1, 1])
        record = testing.record("ImageScaler", [x], {"bias": [1.0, -1.0]})
        (result,) = onnxlower.translate(record, op)

        data = np.array([[[[3.0]], [[4.0]]]], dtype=np.float32)
        (actual,) = testing.run(op, [x], [result], [data])
        np.testing.assert_allclose(actual, [[[[4.0]], [[3.0]]]])

    def test_constants_follow_the_input_type(self):
        op = TranslationContext()
        x = testing.value("x", ir.DataType.FLOAT16, shape=[1, 1, 2, 2])
        record = testing.record("ImageScaler", [x], {"scale": 2.0, "bias": [0.5]})
        (result,) = onnxlower.translate(record, op)

        self.assertEqual(result.dtype, ir.DataType.FLOAT16)
        constants = [n.outputs[0] for n in op.nodes if n.op_type == "Constant"]
        self.assertEqual([c.dtype for c in constants], [ir.DataType.FLOAT16] * 2)
        self.assertEqual(constants[1].shape, ir.Shape([1, 1, 1, 1]))

    def test_bias_length_must_match_channels(self):
        x = testing.value("x", shape=[1, 3, 4, 4])
        record = testing.record("ImageScaler", [x], {"bias": [1.0, 2.0]})
        with self.assertRaises(errors.ShapeMismatchError) as cm:
            onnxlower.translate(record, TranslationContext())
        self.assertIn(
            "Number of bias attribute elements: 2 does not match the channel dimension: 3",
            str(cm.exception),
        )

    def test_dynamic_channels_are_accepted(self):
        op = TranslationContext()
        x = testing.value("x", shape=["N", "C", 4, 4])
        record = testing.record("ImageScaler", [x], {"bias": [1.0, 2.0]})
        (result,) = onnxlower.translate(record, op)
        self.assertEqual(result.producer().op_type, "Add")

    def test_input_must_be_4d(self):
        x = testing.value("x", shape=[3, 4, 4])
        record = testing.record("ImageScaler", [x], {"bias": [1.0, 2.0, 3.0]})
        with self.assertRaisesRegex(
            errors.ShapeMismatchError, "ImageScaler expects a 4D tensor in NCHW format"
        ):
            onnxlower.translate(record, TranslationContext())

    def test_integer_scale_is_rejected(self):
        x = testing.value("x", shape=[1, 3, 4, 4])
        record = testing.record("ImageScaler", [x], {"bias": [1.0, 2.0, 3.0], "scale": 2})
        with self.assertRaises(errors.AttributeTypeError) as cm:
            onnxlower.translate(record, TranslationContext())
        self.assertEqual(cm.exception.name, "scale")

    def test_bias_is_required(self):
        x = testing.value("x", shape=[1, 3, 4, 4])
        with self.assertRaises(errors.MissingAttributeError) as cm:
            onnxlower.translate(testing.record("ImageScaler", [x]), TranslationContext())
        self.assertEqual(cm.exception.name, "bias")

    def test_exactly_one_input(self):
        x = testing.value("x", shape=[1, 1, 4, 4])
        record = testing.record("ImageScaler", [x, x], {"bias": [1.0]})
        with self.assertRaises(errors.ShapeMismatchError):
            onnxlower.translate(record, TranslationContext())


if __name__ == "__main__":
    unittest.main()
