"""
Recurrent network wrapper.

Builds a RecurrentStack from a compact shape description and exposes
shape-validated evaluation and single-step batch training on flat,
double-precision buffers.
"""

import threading
import numpy as np
from typing import Any, Callable, List, Sequence
import logging

from ..config import get_engine_config, real_dtype
from ..framework.errors import AllocationFailure, ConstructionError, ShapeMismatchError
from ..framework.specs import SequenceShape
from .architecture import RecurrentStack, TensorSequence
from .codec import TensorSequenceCodec, as_flat_array
from .layers import cross_entropy_cost

logger = logging.getLogger(__name__)

# Conversion buffers are per thread; calls on different threads never share them
_scratch = threading.local()


def _thread_scratch(name: str, length: int, factory: Callable[[], Any] = lambda: None) -> List[Any]:
    """Return this thread's scratch list ``name`` resized to ``length``."""
    items = getattr(_scratch, name, None)
    if items is None:
        items = []
        setattr(_scratch, name, items)
    del items[length:]
    items.extend(factory() for _ in range(length - len(items)))
    return items


def _thread_output(length: int) -> np.ndarray:
    """Return this thread's evaluation output buffer sized to ``length``."""
    output = getattr(_scratch, 'output', None)
    if output is None or output.size != length:
        output = np.empty(length, dtype=np.float64)
        _scratch.output = output
    return output


class RecurrentNetworkWrapper:
    """
    Wrapper of a stacked recurrent network.

    Construction consumes the time depth and the layer item sizes; only the
    derived input/output shapes are kept. Every shape check of ``evaluate``
    and ``train`` happens before any conversion, so a rejected call leaves the
    network untouched.
    """

    def __init__(self, time_depth: int, layer_sizes: Sequence[int]):
        """
        Build the network.

        Args:
            time_depth: Number of time steps of every layer
            layer_sizes: Time-point input size of the first layer followed by
                the time-point output size of every layer
        """
        try:
            time_depth = int(time_depth)
            sizes = [int(size) for size in layer_sizes]
        except (TypeError, ValueError) as e:
            raise ConstructionError(f"Can't construct the net: {e}") from e

        if len(sizes) < 2:
            raise ConstructionError("Can't construct the net: at least 2 layer sizes are required")
        if time_depth <= 0:
            raise ConstructionError(f"Can't construct the net: invalid time depth {time_depth}")
        if any(size <= 0 for size in sizes):
            raise ConstructionError(f"Can't construct the net: invalid layer sizes {sizes}")

        engine = get_engine_config()
        try:
            self._net = RecurrentStack(dtype=real_dtype(), init_std=engine.init_std, seed=engine.seed)

            in_size = SequenceShape.flat(sizes[0], time_depth)
            for layer_id in range(1, len(sizes)):
                in_size = self._net.append_layer(in_size, SequenceShape.flat(sizes[layer_id], time_depth))

            self._context = self._net.allocate_context()
        except (MemoryError, RuntimeError) as e:
            raise AllocationFailure(f"Can't allocate the net: {e}") from e

        self._codec = TensorSequenceCodec(self._net.dtype)
        self._plain_input_size = self._net.in_size().plain_size
        self._plain_output_size = self._net.out_size().plain_size

        logger.info(f"Constructed RNN: sizes={sizes}, depth={time_depth}, "
                    f"precision={engine.precision}, parameters={self._net.get_parameter_count()}")

    @property
    def network(self) -> RecurrentStack:
        """The underlying engine network"""
        return self._net

    @property
    def plain_input_size(self) -> int:
        """Number of values in one flat input sample"""
        return self._plain_input_size

    @property
    def plain_output_size(self) -> int:
        """Number of values in one flat output sample"""
        return self._plain_output_size

    @property
    def time_depth(self) -> int:
        """Number of time steps per sample"""
        return self._net.in_size().depth

    def in_size(self) -> SequenceShape:
        """Input shape of the net"""
        return self._net.in_size()

    def out_size(self) -> SequenceShape:
        """Output shape of the net"""
        return self._net.out_size()

    def layer_count(self) -> int:
        """Number of layers constituting the net"""
        return self._net.layer_count()

    @staticmethod
    def _flat_input(size: int, buffer: Any, what: str) -> np.ndarray:
        flat = as_flat_array(buffer, size)
        if flat.size < size:
            raise ShapeMismatchError(f"Invalid {what}: {size} values declared, {flat.size} provided")
        return flat[:size]

    def evaluate(self, size: int, input: Any) -> np.ndarray:
        """
        Evaluate the net on one flat input sample.

        Args:
            size: Number of values in ``input``
            input: Flat input buffer of ``plain_input_size`` values

        Returns:
            Flat output of ``plain_output_size`` values. The array is a
            per-thread scratch buffer, overwritten by the next evaluation.
        """
        if size != self._plain_input_size:
            raise ShapeMismatchError(f"Invalid input data: expected {self._plain_input_size} values, got {size}")

        flat = self._flat_input(size, input, "input data")

        in_size = self._net.in_size()
        input_sequence = _thread_scratch('evaluate_input', in_size.depth)
        self._codec.unpack(in_size.item_size, flat, input_sequence)

        output_sequence = self._net.act(input_sequence)

        output = _thread_output(self._plain_output_size)
        self._codec.pack(output_sequence, output)
        return output

    def train(self,
              in_aggregate_size: int,
              input_aggregate: Any,
              ref_aggregate_size: int,
              reference_aggregate: Any,
              learning_rate: float) -> None:
        """
        Perform a single batch-training step on aggregated input/reference data.

        Sample i occupies ``input_aggregate[i * plain_input_size:(i + 1) * plain_input_size]``
        and ``reference_aggregate[i * plain_output_size:(i + 1) * plain_output_size]``.

        Args:
            in_aggregate_size: Total number of values in ``input_aggregate``
            input_aggregate: Concatenated flat input samples
            ref_aggregate_size: Total number of values in ``reference_aggregate``
            reference_aggregate: Concatenated flat reference samples
            learning_rate: Step size of the update
        """
        if in_aggregate_size < 0 or in_aggregate_size % self._plain_input_size != 0:
            raise ShapeMismatchError(f"Invalid input aggregate size {in_aggregate_size}: "
                                     f"not a multiple of {self._plain_input_size}")
        if ref_aggregate_size < 0 or ref_aggregate_size % self._plain_output_size != 0:
            raise ShapeMismatchError(f"Invalid reference aggregate size {ref_aggregate_size}: "
                                     f"not a multiple of {self._plain_output_size}")

        pair_count = in_aggregate_size // self._plain_input_size
        if pair_count != ref_aggregate_size // self._plain_output_size:
            raise ShapeMismatchError(f"Input aggregate holds {pair_count} samples, reference aggregate "
                                     f"holds {ref_aggregate_size // self._plain_output_size}")

        inputs = self._flat_input(in_aggregate_size, input_aggregate, "input aggregate")
        references = self._flat_input(ref_aggregate_size, reference_aggregate, "reference aggregate")

        if pair_count == 0:
            logger.debug("Empty training batch, nothing to learn")
            return

        in_size = self._net.in_size()
        out_size = self._net.out_size()

        input_sequences: List[TensorSequence] = _thread_scratch('train_inputs', pair_count, list)
        reference_sequences: List[TensorSequence] = _thread_scratch('train_references', pair_count, list)

        for pair_id in range(pair_count):
            in_begin = pair_id * self._plain_input_size
            ref_begin = pair_id * self._plain_output_size

            sample = _resize(input_sequences[pair_id], in_size.depth)
            self._codec.unpack(in_size.item_size, inputs[in_begin:in_begin + self._plain_input_size], sample)

            reference = _resize(reference_sequences[pair_id], out_size.depth)
            self._codec.unpack(out_size.item_size, references[ref_begin:ref_begin + self._plain_output_size],
                               reference)

        cost = self._net.learn(input_sequences, reference_sequences, cross_entropy_cost,
                               float(learning_rate), self._context)

        logger.debug(f"Training step {self._context.step_count}: {pair_count} samples, "
                     f"lr={learning_rate}, cost={cost:.6f}")


def _resize(items: List[Any], length: int) -> List[Any]:
    """Resize a scratch list in place, padding with None."""
    del items[length:]
    items.extend([None] * (length - len(items)))
    return items
