# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.
"""Resolution of pooling attributes shared by the pooling operators."""

from __future__ import annotations

import math
from typing import Any, Optional, Sequence

import onnx_ir as ir

from onnxlower import errors
from onnxlower._context import OutputVector, TranslationContext
from onnxlower._record import OperatorRecord

_AUTO_PAD_MODES = ("NOTSET", "VALID", "SAME_UPPER", "SAME_LOWER")


def _check_length(name: str, values: Sequence[int], expected: int) -> None:
    if len(values) != expected:
        raise errors.ShapeMismatchError(
            f"Attribute '{name}' has {len(values)} element(s), expected {expected}."
        )


class PoolingFactory:
    """Interprets the attributes of a pooling operator and emits the pooling node.

    Attributes:
        kernel_shape: Kernel extent per spatial axis.
        strides: Stride per spatial axis.
        dilations: Dilation per spatial axis.
        pads: Begin pads followed by end pads, or None when ``auto_pad`` is
            passed through because the spatial dims are not static.
        auto_pad: The auto_pad mode of the source operator.
        ceil_mode: Whether output extents are rounded up.
        storage_order: Layout of the flattened indices (0 row major, 1 column major).
    """

    def __init__(
        self,
        node: OperatorRecord,
        op: TranslationContext,
        *,
        count_include_pad: Optional[bool] = None,
    ) -> None:
        self._node = node
        self._op = op
        self._x = node.input(0)
        attributes = node.attributes

        self.kernel_shape = attributes.get_ints("kernel_shape")
        spatial_rank = len(self.kernel_shape)
        if spatial_rank == 0:
            raise errors.ShapeMismatchError("Attribute 'kernel_shape' must not be empty.")
        shape = self._x.shape
        if shape is not None and shape.rank() != spatial_rank + 2:
            raise errors.ShapeMismatchError(
                f"Input of rank {shape.rank()} does not match a kernel of rank {spatial_rank}."
            )
        self.strides = attributes.get_ints("strides", [1] * spatial_rank)
        _check_length("strides", self.strides, spatial_rank)
        self.dilations = attributes.get_ints("dilations", [1] * spatial_rank)
        _check_length("dilations", self.dilations, spatial_rank)
        self.ceil_mode = bool(attributes.get_int("ceil_mode", 0))
        self.storage_order = attributes.get_int("storage_order", 0)
        if count_include_pad is None:
            count_include_pad = bool(attributes.get_int("count_include_pad", 0))
        self.count_include_pad = count_include_pad

        self.auto_pad = attributes.get_string("auto_pad", "NOTSET")
        if self.auto_pad not in _AUTO_PAD_MODES:
            raise errors.TranslationError(f"Unsupported auto_pad mode '{self.auto_pad}'.")
        explicit_pads = attributes.get_ints("pads", None)
        if explicit_pads is not None:
            _check_length("pads", explicit_pads, 2 * spatial_rank)
        self.pads = self._resolve_pads(explicit_pads)

    @property
    def spatial_rank(self) -> int:
        return len(self.kernel_shape)

    def _spatial_dims(self) -> Optional[list[int]]:
        shape = self._x.shape
        if shape is None:
            return None
        dims = [shape[i + 2] for i in range(self.spatial_rank)]
        if not all(isinstance(dim, int) for dim in dims):
            return None
        return dims  # type: ignore[return-value]

    def _resolve_pads(self, explicit_pads: Optional[Sequence[int]]) -> Optional[list[int]]:
        if self.auto_pad == "NOTSET":
            if explicit_pads is None:
                return [0] * (2 * self.spatial_rank)
            return list(explicit_pads)
        if self.auto_pad == "VALID":
            return [0] * (2 * self.spatial_rank)
        dims = self._spatial_dims()
        if dims is None:
            return None
        begins = []
        ends = []
        for size, kernel, stride, dilation in zip(
            dims, self.kernel_shape, self.strides, self.dilations
        ):
            output_size = math.ceil(size / stride)
            effective_kernel = (kernel - 1) * dilation + 1
            total = max(0, (output_size - 1) * stride + effective_kernel - size)
            small, big = total // 2, total - total // 2
            if self.auto_pad == "SAME_UPPER":
                begins.append(small)
                ends.append(big)
            else:
                begins.append(big)
                ends.append(small)
        return begins + ends

    def output_shape(self) -> Optional[list[Any]]:
        """The static output shape, when it can be computed."""
        dims = self._spatial_dims()
        if dims is None or self.pads is None:
            return None
        shape = self._x.shape
        assert shape is not None
        output = [shape[0], shape[1]]
        rounding = math.ceil if self.ceil_mode else math.floor
        for i, size in enumerate(dims):
            begin, end = self.pads[i], self.pads[i + self.spatial_rank]
            effective_kernel = (self.kernel_shape[i] - 1) * self.dilations[i] + 1
            extent = rounding((size + begin + end - effective_kernel) / self.strides[i]) + 1
            # The last window must start inside the input or the begin padding
            if self.ceil_mode and (extent - 1) * self.strides[i] >= size + begin:
                extent -= 1
            output.append(extent)
        return output

    def _pool_attributes(self) -> dict[str, Any]:
        attributes: dict[str, Any] = {
            "kernel_shape": list(self.kernel_shape),
            "strides": list(self.strides),
            "dilations": list(self.dilations),
            "ceil_mode": int(self.ceil_mode),
        }
        if self.pads is None:
            attributes["auto_pad"] = self.auto_pad
        else:
            attributes["pads"] = self.pads
        return attributes

    def make_max_pool(self) -> OutputVector:
        op = self._op
        result = op.MaxPool(self._x, **self._pool_attributes())
        op.set_type_and_shape(result, self._x.dtype, self.output_shape())
        return [result]

    def make_max_pool_with_indices(self) -> OutputVector:
        op = self._op
        result, indices = op.MaxPool(
            self._x,
            storage_order=self.storage_order,
            _outputs=2,
            **self._pool_attributes(),
        )
        output_shape = self.output_shape()
        op.set_type_and_shape(result, self._x.dtype, output_shape)
        op.set_type_and_shape(indices, ir.DataType.INT64, output_shape)
        return [result, indices]

    def make_avg_pool(self) -> OutputVector:
        op = self._op
        result = op.AveragePool(
            self._x,
            count_include_pad=int(self.count_include_pad),
            **self._pool_attributes(),
        )
        op.set_type_and_shape(result, self._x.dtype, self.output_shape())
        return [result]
