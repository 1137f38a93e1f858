"""Unit tests for flat buffer <-> tensor sequence conversion."""

from __future__ import annotations

import ctypes
import sys
from pathlib import Path

import numpy as np
import pytest
import torch


SRC_DIR = Path(__file__).resolve().parents[2] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from rnnbridge.model.codec import TensorSequenceCodec, as_flat_array


class TestUnpack:
    """Tests covering ``TensorSequenceCodec.unpack``."""

    def test_chunks_go_to_matching_elements(self) -> None:
        """Chunk i of the buffer lands in element i with shape (1, 1, item_size)."""

        codec = TensorSequenceCodec(torch.float64)
        dest = [None] * 3
        codec.unpack(2, [1.0, 2.0, 3.0, 4.0, 5.0, 6.0], dest)

        assert all(item.shape == (1, 1, 2) for item in dest)
        assert dest[0].flatten().tolist() == [1.0, 2.0]
        assert dest[1].flatten().tolist() == [3.0, 4.0]
        assert dest[2].flatten().tolist() == [5.0, 6.0]

    def test_existing_elements_are_replaced(self) -> None:
        """Stale content of a reused destination is overwritten."""

        codec = TensorSequenceCodec(torch.float64)
        dest = [torch.zeros(1, 1, 5), torch.zeros(1, 1, 5)]
        codec.unpack(1, [7.0, 8.0], dest)

        assert [item.item() for item in dest] == [7.0, 8.0]

    def test_only_required_prefix_is_read(self) -> None:
        """Values beyond N * item_size are ignored."""

        codec = TensorSequenceCodec(torch.float64)
        dest = [None] * 2
        codec.unpack(2, np.arange(10, dtype=np.float64), dest)

        assert torch.cat(dest, dim=2).flatten().tolist() == [0.0, 1.0, 2.0, 3.0]

    def test_single_precision_narrows(self) -> None:
        """Elements use the engine dtype."""

        codec = TensorSequenceCodec(torch.float32)
        dest = [None]
        codec.unpack(3, [0.1, 0.2, 0.3], dest)

        assert dest[0].dtype == torch.float32

    def test_source_buffer_is_copied(self) -> None:
        """Mutating the caller's buffer afterwards does not affect the sequence."""

        codec = TensorSequenceCodec(torch.float64)
        source = np.array([1.0, 2.0])
        dest = [None] * 2
        codec.unpack(1, source, dest)
        source[:] = 0.0

        assert [item.item() for item in dest] == [1.0, 2.0]


class TestPack:
    """Tests covering ``TensorSequenceCodec.pack``."""

    def test_elements_are_written_contiguously(self) -> None:
        codec = TensorSequenceCodec(torch.float32)
        source = [torch.tensor([[[1.0, 2.0]]]), torch.tensor([[[3.0, 4.0, 5.0]]])]
        dest = np.zeros(6)

        written = codec.pack(source, dest)

        assert written == 5
        assert dest.tolist() == [1.0, 2.0, 3.0, 4.0, 5.0, 0.0]

    def test_round_trip_is_exact_in_double_precision(self) -> None:
        """pack(unpack(buffer)) reproduces the buffer bit for bit."""

        codec = TensorSequenceCodec(torch.float64)
        buffer = np.random.default_rng(0).normal(size=4 * 7)
        sequence = [None] * 7
        codec.unpack(4, buffer, sequence)

        restored = np.empty_like(buffer)
        codec.pack(sequence, restored)

        assert np.array_equal(restored, buffer)

    def test_round_trip_of_float32_values_in_single_precision(self) -> None:
        """Values representable in float32 survive narrowing and widening unchanged."""

        codec = TensorSequenceCodec(torch.float32)
        buffer = np.random.default_rng(1).normal(size=3 * 5).astype(np.float32).astype(np.float64)
        sequence = [None] * 5
        codec.unpack(3, buffer, sequence)

        restored = np.empty_like(buffer)
        codec.pack(sequence, restored)

        assert np.array_equal(restored, buffer)


class TestAsFlatArray:
    """Tests covering the buffer adapter."""

    def test_ctypes_array(self) -> None:
        buffer = (ctypes.c_double * 3)(1.0, 2.0, 3.0)
        assert as_flat_array(buffer).tolist() == [1.0, 2.0, 3.0]

    def test_ctypes_pointer_requires_size(self) -> None:
        buffer = (ctypes.c_double * 3)(1.0, 2.0, 3.0)
        pointer = ctypes.cast(buffer, ctypes.POINTER(ctypes.c_double))

        assert as_flat_array(pointer, 2).tolist() == [1.0, 2.0]
        with pytest.raises(ValueError, match="size is required"):
            as_flat_array(pointer)

    def test_null_pointer_with_zero_size(self) -> None:
        flat = as_flat_array(ctypes.POINTER(ctypes.c_double)(), 0)
        assert flat.size == 0
        assert flat.dtype == np.float64

    def test_nested_input_is_flattened(self) -> None:
        assert as_flat_array([[1, 2], [3, 4]]).tolist() == [1.0, 2.0, 3.0, 4.0]
