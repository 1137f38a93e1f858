"""
Framework glue for rnnbridge.

This module provides the shape specs, the error taxonomy and the handle
table used by the native boundary. The boundary functions themselves live in
``rnnbridge.framework.native``.
"""

from .errors import (
    RnnBridgeError,
    ConstructionError,
    ShapeMismatchError,
    AllocationFailure,
    InvalidHandle,
    ErrorKind,
    classify
)
from .specs import SequenceShape
from .handles import HandleTable, NULL_HANDLE

__all__ = [
    # Errors
    "RnnBridgeError",
    "ConstructionError",
    "ShapeMismatchError",
    "AllocationFailure",
    "InvalidHandle",
    "ErrorKind",
    "classify",

    # Specs
    "SequenceShape",

    # Handles
    "HandleTable",
    "NULL_HANDLE",
]
