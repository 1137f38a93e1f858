"""
Object-oriented facade over the native boundary.

``Rnn`` owns one network handle and releases it on ``dispose``, on leaving a
``with`` block, or when garbage collected.
"""

from typing import Optional, Sequence
import logging

import numpy as np

from .config import NetworkConfig
from .framework import native

logger = logging.getLogger(__name__)


class Rnn:
    """Wrapper of a recurrent network living behind a boundary handle."""

    def __init__(self, time_depth: int, layer_sizes: Sequence[int],
                 learning_rate: float = NetworkConfig.learning_rate):
        """
        Construct the network.

        Args:
            time_depth: Recurrence depth, shared by all layers
            layer_sizes: Time-point input size of the first layer followed by
                the time-point output size of every layer
            learning_rate: Rate used by ``train`` when none is given
        """
        self._handle = None
        self.learning_rate = learning_rate
        layer_sizes = list(layer_sizes)
        self._handle = native.RnnConstruct(time_depth, len(layer_sizes), layer_sizes)

        if self._handle is None:
            raise RuntimeError("Failed to instantiate an RNN")

    @classmethod
    def from_config(cls, config: NetworkConfig) -> 'Rnn':
        """Create the network described by ``config``."""
        config.validate()
        return cls(config.time_depth, config.layer_sizes, config.learning_rate)

    def __del__(self):
        try:
            self.dispose()
        except RuntimeError as e:
            logger.warning(f"Failed to release RNN handle: {e}")

    def __enter__(self) -> 'Rnn':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.dispose()

    @property
    def input_item_size(self) -> int:
        """Size of an input item of the RNN."""
        return native.RnnGetInputItemSize(self._handle)

    @property
    def output_item_size(self) -> int:
        """Size of an output item of the RNN."""
        return native.RnnGetOutputItemSize(self._handle)

    @property
    def layer_count(self) -> int:
        """Number of (actual) layers in the RNN."""
        return native.RnnGetLayerCount(self._handle)

    @property
    def depth(self) -> int:
        """Recurrence depth of the RNN."""
        return native.RnnGetDepth(self._handle)

    @property
    def single_precision(self) -> bool:
        """True if the engine computes in single precision."""
        return native.IsSinglePrecision()

    @property
    def disposed(self) -> bool:
        return self._handle is None

    def evaluate(self, input: Sequence[float]) -> Optional[np.ndarray]:
        """
        Evaluate the RNN at the given input.

        Returns:
            Copy of the flat output, or None if the evaluation failed
        """
        input = np.asarray(input, dtype=np.float64)
        result = None

        def receive(size, buffer):
            nonlocal result
            result = np.array(buffer[:size], dtype=np.float64)

        if not native.RnnEvaluate(self._handle, int(input.size), input, receive):
            return None

        return result

    def train(self, input: Sequence[float], reference: Sequence[float],
              learning_rate: Optional[float] = None) -> bool:
        """Run a single batch-training iteration on the given data."""
        if learning_rate is None:
            learning_rate = self.learning_rate
        input = np.asarray(input, dtype=np.float64)
        reference = np.asarray(reference, dtype=np.float64)
        return native.RnnBatchTrain(self._handle, int(input.size), input,
                                    int(reference.size), reference, learning_rate)

    def dispose(self) -> None:
        """Release the network; further calls are no-ops."""
        if self._handle is None:
            return

        if not native.RnnFree(self._handle):
            raise RuntimeError("Failed to dispose an RNN")

        self._handle = None
