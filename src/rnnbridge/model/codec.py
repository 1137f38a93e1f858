"""
Conversion between flat numeric buffers and tensor sequences.

Flat buffers are always double precision. Tensor sequences use the engine
precision, so narrowing happens in ``unpack`` and widening in ``pack``.
"""

import ctypes
import numpy as np
import torch
from typing import Any, List, Optional


def as_flat_array(buffer: Any, size: Optional[int] = None) -> np.ndarray:
    """
    View a flat numeric buffer as a 1-d float64 array.

    Args:
        buffer: List, tuple, numpy array, ctypes array or ctypes ``double*``
        size: Number of values; required for ctypes pointers

    Returns:
        1-d float64 array (a view when no conversion is needed)
    """
    if isinstance(buffer, ctypes._Pointer):
        if size is None:
            raise ValueError("size is required to read from a pointer")
        if size == 0:
            return np.empty(0, dtype=np.float64)
        return np.ctypeslib.as_array(buffer, shape=(size,))
    return np.asarray(buffer, dtype=np.float64).reshape(-1)


class TensorSequenceCodec:
    """Lossless, order-preserving flat buffer <-> tensor sequence conversion."""

    def __init__(self, dtype: torch.dtype = torch.float32):
        self.dtype = dtype

    def unpack(self, item_size: int, flat_buffer: Any, dest: List[Optional[torch.Tensor]]) -> None:
        """
        Fill every element of ``dest`` with the next ``item_size`` values of ``flat_buffer``.

        Element i receives ``flat_buffer[i * item_size:(i + 1) * item_size]`` as a
        tensor of shape (1, 1, item_size). The buffer must hold at least
        ``len(dest) * item_size`` values.
        """
        flat = as_flat_array(flat_buffer, len(dest) * item_size)
        begin = 0
        for item_id in range(len(dest)):
            end = begin + item_size
            dest[item_id] = torch.tensor(flat[begin:end], dtype=self.dtype).reshape(1, 1, item_size)
            begin = end

    def pack(self, source: List[torch.Tensor], flat_buffer: np.ndarray) -> int:
        """
        Write the elements of ``source`` into ``flat_buffer`` one after another.

        Returns:
            Number of values written
        """
        begin = 0
        for item in source:
            values = item.detach().reshape(-1).to(torch.float64).cpu().numpy()
            end = begin + values.size
            flat_buffer[begin:end] = values
            begin = end
        return begin
