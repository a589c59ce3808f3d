# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.
"""Immutable view of one source operator."""

from __future__ import annotations

__all__ = [
    "OperatorRecord",
    "normalize_domain",
]

import dataclasses
from typing import Any, Iterable, Optional, Sequence, Union

import onnx_ir as ir

from onnxlower import _attributes, _context, errors


def normalize_domain(domain: str) -> str:
    """Treat "ai.onnx" and "" as the same domain."""
    return "" if domain == "ai.onnx" else domain


def _as_input(value: Any) -> ir.Value | None:
    # NullOutput markers produced upstream stand for absent inputs
    if value is None or _context.is_null(value):
        return None
    return value


@dataclasses.dataclass(frozen=True)
class OperatorRecord:
    """One operator to translate.

    Attributes:
        domain: Domain of the operator. "ai.onnx" is stored as "".
        op_type: The opcode, e.g. "MatMul".
        version: Effective opset version of ``domain`` for this operator.
        inputs: Input values in positional order. ``None`` marks an absent
            optional input.
        attributes: The attributes of the operator.
        num_outputs: Number of outputs the source graph declares.
        name: Name of the source node, for diagnostics.
    """

    domain: str
    op_type: str
    version: int
    inputs: tuple[Optional[ir.Value], ...] = ()
    attributes: _attributes.AttributeBag = dataclasses.field(
        default_factory=_attributes.AttributeBag
    )
    num_outputs: int = 1
    name: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "domain", normalize_domain(self.domain))
        object.__setattr__(self, "inputs", tuple(_as_input(v) for v in self.inputs))
        if not isinstance(self.attributes, _attributes.AttributeBag):
            object.__setattr__(self, "attributes", _attributes.AttributeBag(self.attributes))
        if self.num_outputs < 0:
            raise ValueError(f"num_outputs must be non-negative, got {self.num_outputs}")

    @classmethod
    def create(
        cls,
        op_type: str,
        inputs: Sequence[Optional[ir.Value]] = (),
        attributes: Union[Iterable[ir.Attr], _attributes.AttributeBag, None] = None,
        *,
        domain: str = "",
        version: int,
        num_outputs: int = 1,
        name: Optional[str] = None,
    ) -> OperatorRecord:
        return cls(
            domain=domain,
            op_type=op_type,
            version=version,
            inputs=tuple(inputs),
            attributes=_attributes.AttributeBag(attributes or ()),
            num_outputs=num_outputs,
            name=name,
        )

    @classmethod
    def from_node(
        cls,
        node: ir.Node,
        version: int,
        inputs: Optional[Sequence[Optional[ir.Value]]] = None,
    ) -> OperatorRecord:
        """Create a record from a source IR node.

        Args:
            node: The source node.
            version: The effective opset version of the node's domain.
            inputs: Values standing in for the node inputs. Defaults to the
                node's own inputs.
        """
        if inputs is None:
            inputs = node.inputs
        return cls(
            domain=node.domain,
            op_type=node.op_type,
            version=version,
            inputs=tuple(inputs),
            attributes=_attributes.AttributeBag(node.attributes.values()),
            num_outputs=len(node.outputs),
            name=node.name,
        )

    def has_input(self, index: int) -> bool:
        return index < len(self.inputs) and self.inputs[index] is not None

    def input(self, index: int) -> ir.Value:
        """Return a required input.

        Raises:
            MissingInputError: The input is absent.
        """
        if not self.has_input(index):
            raise errors.MissingInputError(index)
        value = self.inputs[index]
        assert value is not None
        return value

    def optional_input(self, index: int) -> Optional[ir.Value]:
        if index < len(self.inputs):
            return self.inputs[index]
        return None

    def check_input_count(self, expected: int) -> None:
        """Require exactly ``expected`` inputs, all present."""
        if len(self.inputs) > expected:
            raise errors.ShapeMismatchError(
                f"Expected {expected} input(s), got {len(self.inputs)}."
            )
        for index in range(expected):
            self.input(index)
