# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.
"""Construction context shared by the translators of one translation pass."""

from __future__ import annotations

__all__ = [
    "NullOutput",
    "OutputVector",
    "TranslationContext",
    "is_null",
]

import contextlib
import dataclasses
import math
from typing import TYPE_CHECKING, Any, Iterable, Iterator, List, Optional, Sequence, Union

import numpy as np
import onnx_ir as ir
from onnx_ir import tape
from typing_extensions import TypeAlias, TypeGuard

from onnxlower import _constants, _flags, errors

if TYPE_CHECKING:
    from onnxlower._record import OperatorRecord

# Sentinel distinguishing "no default" from a default of None.
_MISSING: Any = object()


@dataclasses.dataclass(frozen=True)
class NullOutput:
    """Marks an optional output that is intentionally not produced.

    A NullOutput keeps the positions of an OutputVector stable. It is not an
    ``ir.Value`` and never takes part in computation.
    """

    def __repr__(self) -> str:
        return "NullOutput()"


_NULL_OUTPUT = NullOutput()


def is_null(value: object) -> TypeGuard[NullOutput]:
    """Returns True if the value marks an absent optional output."""
    return isinstance(value, NullOutput)


# Positional outputs of one translated operator.
OutputVector: TypeAlias = List[Union[ir.Value, NullOutput]]


def _shape_size(shape: ir.Shape) -> Optional[int]:
    if not shape.is_static():
        return None
    return math.prod(shape.numpy())


class TranslationContext(tape.Tape):
    """Records the nodes emitted by translators during one translation pass.

    Ops are emitted the same way as with the IR builder: ``context.Add(a, b)``
    appends an ``Add`` node and returns its output. The keyword arguments
    ``_domain``, ``_version`` and ``_outputs`` control the node domain, the
    node version and the number of outputs; every other keyword argument
    becomes an attribute.

    Args:
        default_dtype: Element type of constants that have nothing to follow.
        name_prefix: Prefix for the names of created constants.
        fold_scalar_constants: Fold constant single-element tensors when
            coercing to scalars. Defaults to ``ONNXLOWER_FOLD_SCALAR_CONSTANTS``.
        annotate_source_nodes: Record the source operator in the metadata of
            emitted nodes. Defaults to ``ONNXLOWER_ANNOTATE_SOURCE_NODES``.
    """

    def __init__(
        self,
        *,
        default_dtype: ir.DataType = _constants.DEFAULT_DTYPE,
        name_prefix: str = "",
        fold_scalar_constants: Optional[bool] = None,
        annotate_source_nodes: Optional[bool] = None,
    ) -> None:
        super().__init__()
        self.default_dtype = default_dtype
        self.name_prefix = name_prefix
        self.fold_scalar_constants = (
            _flags.FOLD_SCALAR_CONSTANTS
            if fold_scalar_constants is None
            else fold_scalar_constants
        )
        self.annotate_source_nodes = (
            _flags.ANNOTATE_SOURCE_NODES
            if annotate_source_nodes is None
            else annotate_source_nodes
        )
        self._name_counts: dict[str, int] = {}
        self._used_names: set[str] = set()
        self._domains: set[str] = set()
        self._source: Optional[str] = None

    def __getattr__(self, op_type: str) -> Any:
        if op_type.startswith("_"):
            raise AttributeError(op_type)
        return lambda *args, **kwargs: self._make_node(op_type, args, kwargs)

    @property
    def domains(self) -> frozenset[str]:
        """Domains of all nodes emitted so far."""
        return frozenset(self._domains)

    def reserve_names(self, names: Iterable[Optional[str]]) -> None:
        """Keep generated value names clear of ``names``."""
        self._used_names.update(name for name in names if name)

    def _fresh_name(self, stem: str) -> str:
        while True:
            index = self._name_counts.get(stem, 0)
            self._name_counts[stem] = index + 1
            name = f"{self.name_prefix}{stem}_{index}"
            if name not in self._used_names:
                self._used_names.add(name)
                return name

    def _make_node(
        self,
        op_type: str,
        inputs: Sequence[Optional[ir.Value]],
        kwargs: dict[str, Any],
        output_name: Optional[str] = None,
    ):
        domain = kwargs.pop("_domain", "")
        version = kwargs.pop("_version", None)
        num_outputs = kwargs.pop("_outputs", 1)
        attributes = {name: value for name, value in kwargs.items() if value is not None}
        self._domains.add(domain)

        if num_outputs == 1:
            value = super().op(
                op_type, inputs=inputs, attributes=attributes, domain=domain, version=version
            )
            value.name = output_name or self._fresh_name("val")
            self._annotate(value.producer())
            return value
        values = super().op_multi_out(
            op_type,
            inputs=inputs,
            attributes=attributes,
            domain=domain,
            version=version,
            num_outputs=num_outputs,
        )
        for output in values:
            output.name = self._fresh_name("val")
        self._annotate(values[0].producer())
        return values

    def _annotate(self, node: Optional[ir.Node]) -> None:
        if node is None or not self.annotate_source_nodes or self._source is None:
            return
        node.metadata_props[_constants.SOURCE_METADATA_KEY] = self._source

    @contextlib.contextmanager
    def translating(self, record: OperatorRecord) -> Iterator[None]:
        """Attribute the nodes emitted inside the block to ``record``."""
        source = f"{record.domain or 'ai.onnx'}::{record.op_type}@{record.version}"
        if record.name:
            source += f":{record.name}"
        previous, self._source = self._source, source
        try:
            yield
        finally:
            self._source = previous

    def null(self) -> NullOutput:
        """Return the marker for an optional output that is not produced."""
        return _NULL_OUTPUT

    def dtype_of(self, value: Optional[ir.Value], default: Optional[ir.DataType] = None) -> ir.DataType:
        """Return the element type of a value, or a default when it is unknown."""
        if value is not None and value.dtype is not None:
            return value.dtype
        return self.default_dtype if default is None else default

    def constant(
        self, value: Any, dtype: Optional[ir.DataType] = None, *, shape: Optional[Sequence[int]] = None
    ) -> ir.Value:
        """Emit a Constant node holding ``value`` and return its output.

        Python floats follow the default element type when ``dtype`` is not
        given; Python ints become INT64.
        """
        if isinstance(value, ir.TensorProtocol):
            value = value.numpy()
        array = np.asarray(value)
        if dtype is None:
            if array.dtype.kind == "f" and not isinstance(value, np.ndarray):
                dtype = self.default_dtype
            else:
                dtype = ir.DataType.from_numpy(array.dtype)
        array = array.astype(dtype.numpy())
        if shape is not None:
            array = array.reshape(tuple(shape))
        name = self._fresh_name("const")
        tensor = ir.tensor(array, name=name)
        output = self._make_node("Constant", (), {"value": tensor}, output_name=name)
        output.const_value = tensor
        output.type = ir.TensorType(dtype)
        output.shape = ir.Shape(array.shape)
        return output

    def attribute_as_constant(
        self,
        record: OperatorRecord,
        name: str,
        default: Any = _MISSING,
        dtype: Optional[ir.DataType] = None,
        *,
        attr_type: Optional[ir.AttributeType] = None,
    ) -> ir.Value:
        """Materialize an attribute of ``record`` as a constant.

        Numeric scalars, numeric lists and tensors are supported. Floating
        values use ``dtype`` (or the default element type) and integers become
        INT64 unless ``dtype`` says otherwise.

        Args:
            record: The record holding the attribute.
            name: Name of the attribute.
            default: Value used when the attribute is absent.
            dtype: Element type of the constant.
            attr_type: The kind the attribute must have. Any numeric kind is
                accepted when not given.

        Raises:
            MissingAttributeError: The attribute is absent and no default is given.
            AttributeTypeError: The attribute is not numeric or not of ``attr_type``.
        """
        attr = record.attributes[name] if name in record.attributes else None
        if attr is None:
            if default is _MISSING:
                raise errors.MissingAttributeError(name)
            return self.constant(default, dtype)
        kind = attr.type if attr_type is None else attr_type
        if kind in (ir.AttributeType.FLOAT, ir.AttributeType.FLOATS):
            value = record.attributes.get(name, kind)
            return self.constant(np.asarray(value, dtype=np.float64), dtype or self.default_dtype)
        if kind in (ir.AttributeType.INT, ir.AttributeType.INTS):
            value = record.attributes.get(name, kind)
            return self.constant(np.asarray(value, dtype=np.int64), dtype)
        if kind == ir.AttributeType.TENSOR:
            return self.constant(record.attributes.get(name, kind), dtype)
        raise errors.AttributeTypeError(name, "a numeric attribute", attr.type)

    def interpret_as_scalar(self, value: ir.Value) -> ir.Value:
        """Coerce a single-element tensor into a scalar.

        Raises:
            ShapeMismatchError: The value is known to hold more than one element.
        """
        shape = value.shape
        if shape is not None:
            if shape.rank() == 0:
                return value
            size = _shape_size(shape)
            if size is not None and size != 1:
                raise errors.ShapeMismatchError(
                    f"Expected a single element tensor, got shape {shape}."
                )
        const_value = value.const_value
        if self.fold_scalar_constants and const_value is not None:
            array = const_value.numpy()
            if array.size != 1:
                raise errors.ShapeMismatchError(
                    f"Expected a single element tensor, got shape {list(array.shape)}."
                )
            return self.constant(array.reshape(()), const_value.dtype)
        scalar_shape = self.constant(np.array([], dtype=np.int64))
        scalar = self.Reshape(value, scalar_shape)
        self.set_type_and_shape(scalar, value.dtype, ())
        return scalar

    def set_type_and_shape(
        self,
        value: ir.Value,
        dtype: Optional[ir.DataType],
        shape: Union[ir.Shape, Sequence[Union[int, str, None]], None],
    ) -> None:
        """Annotate an emitted value with its element type and shape when known."""
        if dtype is not None:
            value.type = ir.TensorType(dtype)
        if shape is not None:
            value.shape = ir.Shape(shape)
