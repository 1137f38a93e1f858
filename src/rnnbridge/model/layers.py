"""
Layer implementations for rnnbridge.

This module contains the engine-side building blocks:
- RecurrentLayer: fully connected recurrent layer with sigmoid activation
- fill_random_normal: the fixed weight initialization policy
- cross_entropy_cost: the fixed training cost
"""

import math
import torch
import torch.nn as nn
from typing import Optional
import logging

from ..framework.specs import SequenceShape

logger = logging.getLogger(__name__)

# Lower bound of log arguments in the cost
_LOG_EPS = 1e-12


def fill_random_normal(module: nn.Module, std: Optional[float] = None,
                       generator: Optional[torch.Generator] = None) -> None:
    """
    Fill every parameter of ``module`` from a zero-mean normal distribution.

    Args:
        module: Module whose parameters are overwritten
        std: Standard deviation (None -> 1/sqrt(fan_in) per weight matrix)
        generator: Optional RNG for reproducible fills
    """
    with torch.no_grad():
        for param in module.parameters():
            if std is not None:
                scale = std
            elif param.dim() > 1:
                scale = 1.0 / math.sqrt(param.shape[1])
            else:
                scale = 1.0 / math.sqrt(param.shape[0])
            param.normal_(0.0, scale, generator=generator)


def cross_entropy_cost(output: torch.Tensor, reference: torch.Tensor) -> torch.Tensor:
    """
    Cross-entropy between sigmoid outputs and references, averaged over the batch.

    Args:
        output: Network output of shape (batch_size, depth, item_size), values in (0, 1)
        reference: Reference tensor of the same shape; values are not restricted to [0, 1]

    Returns:
        Scalar cost
    """
    batch_size = max(output.shape[0], 1)
    cost = -(reference * torch.log(output.clamp_min(_LOG_EPS))
             + (1 - reference) * torch.log((1 - output).clamp_min(_LOG_EPS)))
    return cost.sum() / batch_size


class RecurrentLayer(nn.Module):
    """
    Fully connected recurrent layer.

    At every time step t:
        h(t) = sigmoid(W_in x(t) + W_rec h(t-1) + b),  h(-1) = 0

    The layer emits h(t) for every time step, so input and output sequences
    have the same depth.
    """

    def __init__(self,
                 in_size: SequenceShape,
                 out_size: SequenceShape,
                 dtype: torch.dtype = torch.float32,
                 init_std: Optional[float] = None,
                 generator: Optional[torch.Generator] = None):
        """
        Initialize a recurrent layer.

        Args:
            in_size: Shape of the input sequence
            out_size: Shape of the output sequence
            dtype: Engine precision of the parameters
            init_std: Standard deviation of the weight fill
            generator: Optional RNG for reproducible initialization
        """
        super().__init__()

        if in_size.depth != out_size.depth:
            raise ValueError(f"Depth mismatch: {in_size.depth} vs {out_size.depth}")

        self.in_size = in_size
        self.out_size = out_size

        self.input_proj = nn.Linear(in_size.item_size, out_size.item_size, bias=True, dtype=dtype)
        self.recurrent_proj = nn.Linear(out_size.item_size, out_size.item_size, bias=False, dtype=dtype)

        fill_random_normal(self, std=init_std, generator=generator)
        logger.debug(f"RecurrentLayer {in_size.item_size} -> {out_size.item_size}, depth {in_size.depth}")

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        """
        Run the layer over a batch of sequences.

        Args:
            x: Input tensor of shape (batch_size, depth, in_item_size)

        Returns:
            Output tensor of shape (batch_size, depth, out_item_size)
        """
        batch_size = x.shape[0]
        h = x.new_zeros((batch_size, self.out_size.item_size))

        # Input projection does not depend on the state, so do it for all steps at once
        projected = self.input_proj(x)

        outputs = []
        for t in range(x.shape[1]):
            h = torch.sigmoid(projected[:, t] + self.recurrent_proj(h))
            outputs.append(h)

        return torch.stack(outputs, dim=1)
