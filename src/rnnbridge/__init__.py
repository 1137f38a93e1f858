"""
rnnbridge: handle-based boundary for stacked recurrent networks.

Networks are built from a compact layer-size description, evaluated on flat
double-precision buffers and trained one batch step at a time.
"""

from .config import EngineConfig, NetworkConfig, get_engine_config, set_engine_config
from .framework import (
    RnnBridgeError,
    ConstructionError,
    ShapeMismatchError,
    AllocationFailure,
    InvalidHandle,
    SequenceShape
)
from .model import RecurrentNetworkWrapper, TensorSequenceCodec
from .framework.native import (
    RESULT_CALLBACK,
    RnnConstruct,
    RnnFree,
    RnnGetInputItemSize,
    RnnGetOutputItemSize,
    RnnGetLayerCount,
    RnnGetDepth,
    RnnEvaluate,
    RnnBatchTrain,
    IsSinglePrecision
)
from .client import Rnn

__all__ = [
    # Configuration
    "EngineConfig",
    "NetworkConfig",
    "get_engine_config",
    "set_engine_config",

    # Errors and specs
    "RnnBridgeError",
    "ConstructionError",
    "ShapeMismatchError",
    "AllocationFailure",
    "InvalidHandle",
    "SequenceShape",

    # Model
    "RecurrentNetworkWrapper",
    "TensorSequenceCodec",

    # Native boundary
    "RESULT_CALLBACK",
    "RnnConstruct",
    "RnnFree",
    "RnnGetInputItemSize",
    "RnnGetOutputItemSize",
    "RnnGetLayerCount",
    "RnnGetDepth",
    "RnnEvaluate",
    "RnnBatchTrain",
    "IsSinglePrecision",

    # Client
    "Rnn",
]

__version__ = "0.1.0"
