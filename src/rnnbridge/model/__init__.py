"""
rnnbridge Model Package

This package contains the recurrent network, the tensor sequence codec and
the shape-validated wrapper driving them.
"""

# Layer components
from .layers import (
    RecurrentLayer,
    fill_random_normal,
    cross_entropy_cost
)

# Architecture components
from .architecture import (
    RecurrentStack,
    LearningContext,
    TensorSequence,
    sequences_to_batch,
    batch_to_sequence
)

# Flat buffer conversion
from .codec import TensorSequenceCodec, as_flat_array

# Wrapper
from .wrapper import RecurrentNetworkWrapper

__all__ = [
    # Layer components
    "RecurrentLayer",
    "fill_random_normal",
    "cross_entropy_cost",

    # Architecture components
    "RecurrentStack",
    "LearningContext",
    "TensorSequence",
    "sequences_to_batch",
    "batch_to_sequence",

    # Flat buffer conversion
    "TensorSequenceCodec",
    "as_flat_array",

    # Wrapper
    "RecurrentNetworkWrapper"
]
