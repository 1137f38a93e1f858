"""
Handle table for objects handed across the native boundary.

Callers only ever see positive integers. ``None`` and ``0`` are the null
handle. Released handles are never reissued, so a stale handle fails closed.
"""

import itertools
import numbers
import threading
from typing import Any, Dict, Optional
import logging

from .errors import InvalidHandle

logger = logging.getLogger(__name__)

NULL_HANDLE = None


def _checked(handle: Any) -> int:
    """Return ``handle`` as a table key, rejecting null and non-integer handles."""
    if not handle:
        raise InvalidHandle("Null handle")
    if isinstance(handle, bool) or not isinstance(handle, numbers.Integral):
        raise InvalidHandle(f"Invalid handle type {type(handle).__name__}")
    return int(handle)


class HandleTable:
    """Arena mapping integer handles to live objects."""

    def __init__(self):
        self._objects: Dict[int, Any] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def register(self, obj: Any) -> int:
        """Store ``obj`` and return its new handle."""
        with self._lock:
            handle = next(self._ids)
            self._objects[handle] = obj
        logger.debug(f"Registered handle {handle}: {type(obj).__name__}")
        return handle

    def lookup(self, handle: Optional[int]) -> Any:
        """Return the object behind ``handle``."""
        handle = _checked(handle)
        with self._lock:
            obj = self._objects.get(handle)
        if obj is None:
            raise InvalidHandle(f"Unknown handle {handle}")
        return obj

    def release(self, handle: Optional[int]) -> Any:
        """Remove ``handle`` from the table and return the object it referenced."""
        handle = _checked(handle)
        with self._lock:
            obj = self._objects.pop(handle, None)
        if obj is None:
            raise InvalidHandle(f"Unknown handle {handle}")
        logger.debug(f"Released handle {handle}")
        return obj

    def __contains__(self, handle: Optional[int]) -> bool:
        try:
            key = _checked(handle)
        except InvalidHandle:
            return False
        with self._lock:
            return key in self._objects

    def __len__(self) -> int:
        with self._lock:
            return len(self._objects)
