# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.
"""Utilities for testing translators."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

import numpy as np
import onnx.reference
import onnx_ir as ir

from onnxlower import _constants, _context, _record


def value(
    name: str,
    dtype: ir.DataType = ir.DataType.FLOAT,
    shape: Optional[Sequence[int | str | None]] = None,
    const_value: Optional[np.ndarray] = None,
) -> ir.Value:
    """Create a graph input (or a constant when ``const_value`` is given)."""
    return ir.Value(
        name=name,
        type=ir.TensorType(dtype),
        shape=ir.Shape(shape) if shape is not None else None,
        const_value=ir.tensor(const_value, name=name) if const_value is not None else None,
    )


def attribute(name: str, attr_value: Any) -> ir.Attr:
    """Create an attribute, inferring its kind from a Python value."""
    if isinstance(attr_value, ir.TensorProtocol):
        return ir.Attr(name, ir.AttributeType.TENSOR, attr_value)
    if isinstance(attr_value, bool):
        raise TypeError(f"Unsupported attribute value {attr_value!r}")
    if isinstance(attr_value, int):
        return ir.Attr(name, ir.AttributeType.INT, attr_value)
    if isinstance(attr_value, float):
        return ir.Attr(name, ir.AttributeType.FLOAT, attr_value)
    if isinstance(attr_value, str):
        return ir.Attr(name, ir.AttributeType.STRING, attr_value)
    values = list(attr_value)
    if values and all(isinstance(v, str) for v in values):
        return ir.Attr(name, ir.AttributeType.STRINGS, values)
    if values and any(isinstance(v, float) for v in values):
        return ir.Attr(name, ir.AttributeType.FLOATS, [float(v) for v in values])
    return ir.Attr(name, ir.AttributeType.INTS, values)


def record(
    op_type: str,
    inputs: Sequence[Optional[ir.Value]] = (),
    attributes: Optional[Mapping[str, Any]] = None,
    *,
    version: int = 1,
    domain: str = "",
    num_outputs: int = 1,
    name: Optional[str] = None,
) -> _record.OperatorRecord:
    """Create an OperatorRecord from Python attribute values."""
    attrs = [attribute(key, val) for key, val in (attributes or {}).items()]
    return _record.OperatorRecord.create(
        op_type,
        inputs,
        attrs,
        domain=domain,
        version=version,
        num_outputs=num_outputs,
        name=name,
    )


def to_model(
    context: _context.TranslationContext,
    inputs: Sequence[ir.Value],
    outputs: Sequence[ir.Value],
) -> ir.Model:
    """Wrap the nodes recorded on ``context`` into a model."""
    opset_imports = {"": _constants.TARGET_OPSET}
    if _constants.EXTENSION_DOMAIN in context.domains:
        opset_imports[_constants.EXTENSION_DOMAIN] = _constants.EXTENSION_OPSET
    graph = ir.Graph(
        inputs,
        outputs,
        nodes=context.nodes,
        opset_imports=opset_imports,
        name="test_graph",
    )
    return ir.Model(graph, ir_version=_constants.TARGET_IR_VERSION)


def run(
    context: _context.TranslationContext,
    inputs: Sequence[ir.Value],
    outputs: Sequence[ir.Value],
    feeds: Sequence[np.ndarray],
) -> list[np.ndarray]:
    """Evaluate the recorded nodes with the ONNX reference implementation."""
    return run_model(to_model(context, inputs, outputs), feeds)


def run_model(model: ir.Model, feeds: Sequence[np.ndarray]) -> list[np.ndarray]:
    proto = ir.to_proto(model)
    session = onnx.reference.ReferenceEvaluator(proto)
    input_names = [i.name for i in proto.graph.input]
    return list(session.run(None, dict(zip(input_names, feeds))))
