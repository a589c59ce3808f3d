# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.
"""Drive translators over records, graphs and models."""

from __future__ import annotations

__all__ = [
    "GraphTranslator",
    "translate",
    "translate_graph",
    "translate_model",
]

import logging
from typing import Mapping, Optional, Union

import onnx
import onnx_ir as ir

from onnxlower import _constants, _context, _record, _registry, errors

logger = logging.getLogger(__name__)


def translate(
    record: _record.OperatorRecord,
    context: _context.TranslationContext,
    registry: Optional[_registry.Registry] = None,
) -> _context.OutputVector:
    """Translate one record into nodes recorded on ``context``.

    Raises:
        TranslationError: Translation failed. The error carries the domain,
            op_type and version of ``record``.
    """
    if registry is None:
        registry = _registry.default_registry
    try:
        implementation = registry.resolve(record.domain, record.op_type, record.version)
        with context.translating(record):
            outputs = implementation(record, context)
    except errors.TranslationError as e:
        e.attach(
            domain=record.domain,
            op_type=record.op_type,
            version=record.version,
            node_name=record.name,
        )
        raise
    return list(outputs)


def _copy_value(value: ir.Value) -> ir.Value:
    return ir.Value(
        name=value.name,
        type=value.type,
        shape=ir.Shape(value.shape) if value.shape is not None else None,
        const_value=value.const_value,
    )


class GraphTranslator:
    """Translates the nodes of a source graph into a new target graph.

    Nodes are visited in graph order, which must be topological.

    Attributes:
        opset_imports: Opset versions of the source graph, per domain.
        registry: The registry translators are resolved from.
        context: The construction context of the pass.
    """

    def __init__(
        self,
        opset_imports: Mapping[str, int],
        *,
        registry: Optional[_registry.Registry] = None,
        context: Optional[_context.TranslationContext] = None,
    ) -> None:
        self.opset_imports = {
            _record.normalize_domain(domain): version
            for domain, version in opset_imports.items()
        }
        self.registry = registry if registry is not None else _registry.default_registry
        self.context = context if context is not None else _context.TranslationContext()
        self._values: dict[ir.Value, Union[ir.Value, _context.NullOutput]] = {}

    def _node_version(self, node: ir.Node) -> int:
        if node.version is not None:
            return node.version
        domain = _record.normalize_domain(node.domain)
        version = self.opset_imports.get(domain)
        if version is None:
            raise errors.TranslationError(
                f"The graph does not import an opset for domain '{domain}'.",
                domain=domain,
                op_type=node.op_type,
                node_name=node.name,
            )
        return version

    def _lookup(self, node: ir.Node, index: int, value: Optional[ir.Value]) -> Optional[ir.Value]:
        if value is None:
            return None
        target = self._values.get(value)
        if target is None:
            raise errors.MissingInputError(
                index,
                f"Input {index} ('{value.name}') is not produced by an earlier node.",
                domain=node.domain,
                op_type=node.op_type,
                node_name=node.name,
            )
        if _context.is_null(target):
            return None
        assert isinstance(target, ir.Value)
        return target

    def translate_node(self, node: ir.Node) -> _context.OutputVector:
        inputs = [self._lookup(node, i, value) for i, value in enumerate(node.inputs)]
        record = _record.OperatorRecord.from_node(node, self._node_version(node), inputs)
        logger.debug("Translating %s::%s@%d", record.domain, record.op_type, record.version)
        outputs = translate(record, self.context, self.registry)
        for source, target in zip(node.outputs, outputs):
            if isinstance(target, ir.Value) and source.name and target.producer() is not None:
                target.name = source.name
            self._values[source] = target
        return outputs

    def target_opset_imports(self) -> dict[str, int]:
        opset_imports = {"": _constants.TARGET_OPSET}
        if _constants.EXTENSION_DOMAIN in self.context.domains:
            opset_imports[_constants.EXTENSION_DOMAIN] = _constants.EXTENSION_OPSET
        return opset_imports

    def translate_graph(self, graph: ir.Graph) -> ir.Graph:
        # Emitted values take over source names, so generated names must avoid them
        self.context.reserve_names(value.name for value in graph.inputs)
        self.context.reserve_names(graph.initializers)
        self.context.reserve_names(
            output.name for node in graph for output in node.outputs
        )

        inputs = []
        for value in graph.inputs:
            target = _copy_value(value)
            self._values[value] = target
            inputs.append(target)

        initializers = []
        for value in graph.initializers.values():
            if value in self._values:
                # Graph inputs with a default value stay inputs
                continue
            target = _copy_value(value)
            self._values[value] = target
            initializers.append(target)

        for node in graph:
            self.translate_node(node)

        outputs = []
        for value in graph.outputs:
            target = self._values.get(value)
            if target is None or _context.is_null(target):
                raise errors.TranslationError(f"Graph output '{value.name}' is not produced.")
            assert isinstance(target, ir.Value)
            outputs.append(target)

        return ir.Graph(
            inputs,
            outputs,
            nodes=self.context.nodes,
            initializers=initializers,
            opset_imports=self.target_opset_imports(),
            name=graph.name,
        )


def translate_graph(
    graph: ir.Graph,
    opset_imports: Optional[Mapping[str, int]] = None,
    *,
    registry: Optional[_registry.Registry] = None,
    context: Optional[_context.TranslationContext] = None,
) -> ir.Graph:
    """Translate a source graph into a new graph of target operators.

    Args:
        graph: The source graph. Its nodes must be in topological order.
        opset_imports: Opset versions per domain. Defaults to the graph's own.
        registry: Registry to resolve translators from. Defaults to the
            default registry.
        context: Construction context for the pass. A new one is created if
            not given.
    """
    if opset_imports is None:
        opset_imports = graph.opset_imports
    translator = GraphTranslator(opset_imports, registry=registry, context=context)
    return translator.translate_graph(graph)


def translate_model(
    model: Union[ir.Model, onnx.ModelProto],
    *,
    registry: Optional[_registry.Registry] = None,
    context: Optional[_context.TranslationContext] = None,
) -> ir.Model:
    """Translate a model into a new model of target operators.

    Model-local functions are not translated; nodes calling them fail with
    UnsupportedOpcodeError.
    """
    if isinstance(model, onnx.ModelProto):
        model = ir.from_proto(model)
    assert isinstance(model, ir.Model)
    graph = translate_graph(
        model.graph, model.opset_imports, registry=registry, context=context
    )
    return ir.Model(
        graph,
        ir_version=max(model.ir_version, _constants.TARGET_IR_VERSION),
        producer_name="onnxlower",
        doc_string=model.doc_string,
    )
