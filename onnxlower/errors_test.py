# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.
from __future__ import annotations

import unittest

from onnxlower import errors


class TranslationErrorTest(unittest.TestCase):
    def test_message_without_location(self):
        error = errors.TranslationError("Something failed.")
        self.assertEqual(error.location, "")
        self.assertEqual(str(error), "Something failed.")

    def test_attach_fills_location(self):
        error = errors.MissingInputError(2)
        self.assertIs(error.attach(domain="", op_type="QLinearMatMul", version=10), error)
        self.assertEqual(str(error), "[ai.onnx::QLinearMatMul@10] Required input 2 is missing.")

    def test_attach_keeps_existing_fields(self):
        error = errors.TranslationError("Failed.", domain="com.example", node_name="inner")
        error.attach(domain="", op_type="Outer", version=3, node_name="outer")
        self.assertEqual(error.domain, "com.example")
        self.assertEqual(error.node_name, "inner")
        self.assertEqual(error.location, "com.example::Outer@3 (node 'inner')")

    def test_builtin_bases(self):
        self.assertIsInstance(errors.AttributeTypeError("axis", "INT", "FLOAT"), TypeError)
        self.assertIsInstance(errors.ShapeMismatchError("Bad shape."), ValueError)
        self.assertIsInstance(errors.UnsupportedOpcodeError("", "Foo"), RuntimeError)

    def test_attribute_type_error_names_kinds(self):
        error = errors.AttributeTypeError("axis", "INT", "FLOAT")
        self.assertEqual(str(error), "Attribute 'axis' is expected to be INT, got FLOAT.")

    def test_unsupported_version_fields(self):
        error = errors.UnsupportedVersionError("", "DequantizeLinear", 9, 10)
        self.assertEqual(error.requested_version, 9)
        self.assertEqual(error.since_version, 10)
        self.assertIn("since version 10", str(error))


if __name__ == "__main__":
    unittest.main()
