# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.
"""Typed access to the attributes of an operator."""

from __future__ import annotations

__all__ = [
    "AttributeBag",
]

import numbers
from typing import Any, Iterable, Iterator, Mapping, Sequence, Union

import onnx_ir as ir

from onnxlower import errors

# Sentinel distinguishing "no default" from a default of None.
_MISSING: Any = object()

# Element types of the homogeneous list attributes.
_LIST_ELEMENT_TYPES: dict[ir.AttributeType, tuple[type, ...]] = {
    ir.AttributeType.INTS: (numbers.Integral,),
    ir.AttributeType.FLOATS: (numbers.Real,),
    ir.AttributeType.STRINGS: (str,),
}


def _check_homogeneous(attr: ir.Attr) -> None:
    element_types = _LIST_ELEMENT_TYPES.get(attr.type)
    if element_types is None:
        return
    for element in attr.value:
        # bool is an int subclass but never a valid list element
        if isinstance(element, bool) or not isinstance(element, element_types):
            raise errors.AttributeTypeError(attr.name, attr.type, type(element).__name__)


def _normalize(attr_type: ir.AttributeType, value: Any) -> Any:
    if attr_type == ir.AttributeType.FLOAT:
        return float(value)
    if attr_type == ir.AttributeType.INT:
        return int(value)
    if attr_type == ir.AttributeType.FLOATS:
        return [float(v) for v in value]
    if attr_type == ir.AttributeType.INTS:
        return [int(v) for v in value]
    if attr_type == ir.AttributeType.STRINGS:
        return list(value)
    return value


class AttributeBag:
    """An immutable name to attribute mapping with typed retrieval.

    A bag holds at most one attribute per name. List attributes must be
    homogeneous.

    Example::

        bag = AttributeBag([ir.Attr("bias", ir.AttributeType.FLOATS, [1.0, 2.0])])
        bag.get_floats("bias")  # [1.0, 2.0]
        bag.get_float("scale", 1.0)  # 1.0
    """

    def __init__(self, attributes: Union[Iterable[ir.Attr], Mapping[str, ir.Attr]] = ()):
        if isinstance(attributes, (Mapping, AttributeBag)):
            attributes = attributes.values()
        self._attributes: dict[str, ir.Attr] = {}
        for attr in attributes:
            if attr.name in self._attributes:
                raise ValueError(f"Attribute '{attr.name}' is specified more than once.")
            _check_homogeneous(attr)
            self._attributes[attr.name] = attr

    def __getitem__(self, name: str) -> ir.Attr:
        return self._attributes[name]

    def __contains__(self, name: object) -> bool:
        return name in self._attributes

    def __iter__(self) -> Iterator[str]:
        return iter(self._attributes)

    def __len__(self) -> int:
        return len(self._attributes)

    def values(self) -> Iterable[ir.Attr]:
        return self._attributes.values()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({list(self._attributes.values())!r})"

    def get(self, name: str, attr_type: ir.AttributeType, default: Any = _MISSING) -> Any:
        """Return the value of an attribute, checking its kind.

        Args:
            name: Name of the attribute.
            attr_type: The expected kind of the attribute.
            default: Value returned when the attribute is absent. When not
                given, an absent attribute is an error.

        Raises:
            MissingAttributeError: The attribute is absent and no default is given.
            AttributeTypeError: The attribute is present with a different kind.
        """
        attr = self._attributes.get(name)
        if attr is None:
            if default is _MISSING:
                raise errors.MissingAttributeError(name)
            return default
        if attr.type != attr_type:
            raise errors.AttributeTypeError(name, attr_type, attr.type)
        return _normalize(attr_type, attr.value)

    def get_int(self, name: str, default: Any = _MISSING) -> int:
        return self.get(name, ir.AttributeType.INT, default)

    def get_float(self, name: str, default: Any = _MISSING) -> float:
        return self.get(name, ir.AttributeType.FLOAT, default)

    def get_string(self, name: str, default: Any = _MISSING) -> str:
        return self.get(name, ir.AttributeType.STRING, default)

    def get_tensor(self, name: str, default: Any = _MISSING) -> ir.TensorProtocol:
        return self.get(name, ir.AttributeType.TENSOR, default)

    def get_ints(self, name: str, default: Any = _MISSING) -> Sequence[int]:
        return self.get(name, ir.AttributeType.INTS, default)

    def get_floats(self, name: str, default: Any = _MISSING) -> Sequence[float]:
        return self.get(name, ir.AttributeType.FLOATS, default)

    def get_strings(self, name: str, default: Any = _MISSING) -> Sequence[str]:
        return self.get(name, ir.AttributeType.STRINGS, default)
