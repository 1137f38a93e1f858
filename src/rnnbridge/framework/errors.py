"""
Error taxonomy shared by the network wrapper and the native boundary.

Inside the wrapper these are raised before any state is touched. The boundary
functions catch them and map them to sentinel return values via ``classify``.
"""

from enum import Enum


class RnnBridgeError(Exception):
    """Base class of all rnnbridge errors."""


class ConstructionError(RnnBridgeError, ValueError):
    """Shape descriptor or time depth cannot describe a network."""


class ShapeMismatchError(RnnBridgeError, ValueError):
    """Flat buffer length inconsistent with the network's item sizes."""


class AllocationFailure(RnnBridgeError, MemoryError):
    """Resources for the network could not be allocated."""


class InvalidHandle(RnnBridgeError, LookupError):
    """Null, unknown or already released network handle."""


class ErrorKind(Enum):
    """Failure category reported by the boundary."""

    CONSTRUCTION = "construction"
    SHAPE_MISMATCH = "shape_mismatch"
    ALLOCATION = "allocation"
    INVALID_HANDLE = "invalid_handle"
    INTERNAL = "internal"


def classify(exc: BaseException) -> ErrorKind:
    """Map an exception onto the boundary's error kinds."""
    if isinstance(exc, ConstructionError):
        return ErrorKind.CONSTRUCTION
    if isinstance(exc, ShapeMismatchError):
        return ErrorKind.SHAPE_MISMATCH
    if isinstance(exc, (AllocationFailure, MemoryError)):
        return ErrorKind.ALLOCATION
    if isinstance(exc, InvalidHandle):
        return ErrorKind.INVALID_HANDLE
    return ErrorKind.INTERNAL
