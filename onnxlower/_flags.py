# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.
"""Behavior flags read from the environment.

Each flag can be overridden per translation pass through the arguments of
:class:`onnxlower.TranslationContext`.
"""

import logging
import os

logger = logging.getLogger(__name__)


def _load_boolean_flag(
    name: str,
    *,
    this_will: str,
    default: bool = False,
) -> bool:
    """Load a boolean flag from environment variable.

    Args:
        name: The name of the environment variable.
        this_will: A string that describes what enabling this flag will do.
        default: The default value if envvar not defined.
    """
    value = os.getenv(name)
    if value is None:
        return default
    state = value == "1"
    if state != default:
        logger.warning(
            "Flag %s is %s. This will %s.",
            name,
            "enabled" if state else "disabled",
            this_will if state else f"not {this_will}",
        )
    return state


FOLD_SCALAR_CONSTANTS: bool = _load_boolean_flag(
    "ONNXLOWER_FOLD_SCALAR_CONSTANTS",
    this_will="fold constant single-element tensors into scalar constants instead of reshaping them",
    default=True,
)
ANNOTATE_SOURCE_NODES: bool = _load_boolean_flag(
    "ONNXLOWER_ANNOTATE_SOURCE_NODES",
    this_will="record the source operator of every emitted node in its metadata",
)
