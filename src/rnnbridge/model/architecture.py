"""
rnnbridge Architecture: RecurrentStack

This module implements the engine-side network that the wrapper drives:
- RecurrentStack: ordered collection of RecurrentLayers sharing one time depth
- LearningContext: reusable state of the learning step (optimizer, counters)

Layers are appended one at a time; each new layer consumes the output shape
of the previous one.
"""

import torch
import torch.nn as nn
from dataclasses import dataclass
from typing import Callable, List, Optional
import logging

from ..framework.specs import SequenceShape
from .layers import RecurrentLayer

logger = logging.getLogger(__name__)

# One sample: a list of time-point tensors of shape (1, 1, item_size)
TensorSequence = List[torch.Tensor]

CostFunction = Callable[[torch.Tensor, torch.Tensor], torch.Tensor]


def sequences_to_batch(sequences: List[TensorSequence]) -> torch.Tensor:
    """Stack tensor sequences into a (batch_size, depth, item_size) tensor."""
    samples = [torch.cat([item.reshape(1, 1, -1) for item in sequence], dim=1)
               for sequence in sequences]
    return torch.cat(samples, dim=0)


def batch_to_sequence(batch: torch.Tensor, sample_id: int = 0) -> TensorSequence:
    """Split one sample of a batch tensor back into time-point tensors."""
    return [item.reshape(1, 1, -1) for item in batch[sample_id].unbind(dim=0)]


@dataclass
class LearningContext:
    """Reusable state of the learning step bound to one RecurrentStack."""

    optimizer: torch.optim.Optimizer
    step_count: int = 0
    last_cost: Optional[float] = None


class RecurrentStack(nn.Module):
    """
    Stack of recurrent layers.

    The stack owns the parameters of all layers and provides the two engine
    operations the wrapper needs:
    - act: forward pass of a single tensor sequence
    - learn: one gradient step over a batch of (input, reference) sequences
    """

    def __init__(self,
                 dtype: torch.dtype = torch.float32,
                 init_std: Optional[float] = None,
                 seed: Optional[int] = None):
        """
        Initialize an empty stack.

        Args:
            dtype: Engine precision of all layers
            init_std: Standard deviation of the weight fill
            seed: Optional seed for reproducible initialization
        """
        super().__init__()

        self.layers = nn.ModuleList()
        self.dtype = dtype
        self.init_std = init_std

        self._generator = None
        if seed is not None:
            self._generator = torch.Generator()
            self._generator.manual_seed(seed)

    def append_layer(self, in_size: SequenceShape, out_size: SequenceShape) -> SequenceShape:
        """
        Append a recurrent layer and return its output shape.

        Args:
            in_size: Input shape of the new layer
            out_size: Output shape of the new layer

        Returns:
            Output shape, to be used as the input shape of the next layer
        """
        if len(self.layers) > 0 and in_size != self.out_size():
            raise ValueError(f"Layer input {in_size} does not match stack output {self.out_size()}")

        layer = RecurrentLayer(in_size, out_size, dtype=self.dtype,
                               init_std=self.init_std, generator=self._generator)
        self.layers.append(layer)
        return out_size

    def layer_count(self) -> int:
        """Number of layers in the stack"""
        return len(self.layers)

    def in_size(self) -> SequenceShape:
        """Input shape of the first layer"""
        return self.layers[0].in_size

    def out_size(self) -> SequenceShape:
        """Output shape of the last layer"""
        return self.layers[-1].out_size

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        """
        Forward pass through all layers in the stack.

        Args:
            x: Input tensor of shape (batch_size, depth, in_item_size)

        Returns:
            Output tensor of shape (batch_size, depth, out_item_size)
        """
        for layer in self.layers:
            x = layer(x)
        return x

    def act(self, sequence: TensorSequence) -> TensorSequence:
        """Evaluate the stack on one tensor sequence without tracking gradients."""
        with torch.no_grad():
            output = self.forward(sequences_to_batch([sequence]))
        return batch_to_sequence(output)

    def allocate_context(self) -> LearningContext:
        """Create the learning context used by ``learn``."""
        return LearningContext(optimizer=torch.optim.SGD(self.parameters(), lr=1.0))

    def learn(self,
              inputs: List[TensorSequence],
              references: List[TensorSequence],
              cost: CostFunction,
              learning_rate: float,
              context: LearningContext) -> float:
        """
        Perform one gradient-descent step over the given batch.

        Args:
            inputs: Input sequences
            references: Reference sequences, aligned with ``inputs``
            cost: Cost function of (output, reference)
            learning_rate: Step size
            context: Learning context allocated by this stack

        Returns:
            Cost of the batch before the update
        """
        if len(inputs) != len(references):
            raise ValueError(f"Got {len(inputs)} inputs but {len(references)} references")

        x = sequences_to_batch(inputs)
        reference = sequences_to_batch(references)

        optimizer = context.optimizer
        for group in optimizer.param_groups:
            group['lr'] = learning_rate

        optimizer.zero_grad()
        batch_cost = cost(self.forward(x), reference)
        batch_cost.backward()
        optimizer.step()

        context.step_count += 1
        context.last_cost = batch_cost.item()
        return context.last_cost

    def get_parameter_count(self) -> int:
        """Get total parameter count"""
        return sum(p.numel() for p in self.parameters())
