"""
Native boundary of rnnbridge.

Flat, handle-based functions mirroring the exported C interface of the
network library. Networks are referenced by opaque integer handles; buffers
are flat double-precision arrays (lists, numpy arrays, ctypes arrays or
ctypes pointers with an explicit size).

No exception escapes these functions. Every failure is logged with its
error kind and turned into the documented sentinel:
- RnnConstruct: None
- getters: -1
- everything else: False
"""

import ctypes
from typing import Any, Callable, List, Optional
import logging

import numpy as np

from ..config import get_engine_config
from ..model.wrapper import RecurrentNetworkWrapper
from .errors import ConstructionError, ErrorKind, classify
from .handles import HandleTable, NULL_HANDLE

logger = logging.getLogger(__name__)

# C signature of the evaluation result callback: void (*)(int size, double* data)
RESULT_CALLBACK = ctypes.CFUNCTYPE(None, ctypes.c_int, ctypes.POINTER(ctypes.c_double))

ResultCallback = Callable[[int, Any], None]

_handles = HandleTable()


def _report_failure(function: str, exc: Exception) -> None:
    """Log a failure caught at the boundary."""
    kind = classify(exc)
    if kind is ErrorKind.INTERNAL:
        logger.exception(f"{function} failed ({kind.value}): {exc}")
    else:
        logger.warning(f"{function} failed ({kind.value}): {exc}")


def _read_layer_sizes(count: int, layer_sizes: Any) -> List[int]:
    """Read ``count`` layer sizes from a sequence or an ``int*``."""
    if count < 0:
        raise ConstructionError(f"Invalid layer sizes count {count}")
    if isinstance(layer_sizes, ctypes._Pointer):
        return list(layer_sizes[:count])

    sizes = list(layer_sizes)
    if count > len(sizes):
        raise ConstructionError(f"{count} layer sizes declared, {len(sizes)} provided")
    return sizes[:count]


def _deliver(callback: ResultCallback, output: np.ndarray) -> None:
    """Hand a borrowed view of ``output`` to ``callback``."""
    if isinstance(callback, RESULT_CALLBACK):
        callback(int(output.size), output.ctypes.data_as(ctypes.POINTER(ctypes.c_double)))
        return

    view = output.view()
    view.flags.writeable = False
    callback(int(view.size), view)


def _query(function: str, handle: Optional[int], getter: Callable[[RecurrentNetworkWrapper], int]) -> int:
    try:
        return int(getter(_handles.lookup(handle)))
    except Exception as e:
        _report_failure(function, e)
        return -1


def RnnConstruct(time_depth: int, layer_sizes_count: int, layer_sizes: Any) -> Optional[int]:
    """
    Construct a network.

    Args:
        time_depth: Number of time steps of every layer
        layer_sizes_count: Number of items in ``layer_sizes``
        layer_sizes: Time-point input size of the first layer followed by the
            time-point output size of every layer

    Returns:
        Handle of the new network, or None on failure
    """
    try:
        net = RecurrentNetworkWrapper(time_depth, _read_layer_sizes(layer_sizes_count, layer_sizes))
        return _handles.register(net)
    except Exception as e:
        _report_failure("RnnConstruct", e)
        return NULL_HANDLE


def RnnFree(handle: Optional[int]) -> bool:
    """Release the network behind ``handle``."""
    try:
        _handles.release(handle)
    except Exception as e:
        _report_failure("RnnFree", e)
        return False

    return True


def RnnGetInputItemSize(handle: Optional[int]) -> int:
    """Size of a time-point input item, or -1."""
    return _query("RnnGetInputItemSize", handle, lambda net: net.in_size().item_size)


def RnnGetOutputItemSize(handle: Optional[int]) -> int:
    """Size of a time-point output item, or -1."""
    return _query("RnnGetOutputItemSize", handle, lambda net: net.out_size().item_size)


def RnnGetLayerCount(handle: Optional[int]) -> int:
    """Number of layers, or -1."""
    return _query("RnnGetLayerCount", handle, lambda net: net.layer_count())


def RnnGetDepth(handle: Optional[int]) -> int:
    """Time depth, or -1."""
    return _query("RnnGetDepth", handle, lambda net: net.in_size().depth)


def RnnEvaluate(handle: Optional[int], size: int, input: Any, callback: ResultCallback) -> bool:
    """
    Evaluate the network and pass the result to ``callback``.

    On success ``callback(result_length, result_buffer)`` is called exactly
    once before returning True. The buffer is only valid during the call.
    """
    try:
        output = _handles.lookup(handle).evaluate(size, input)
        _deliver(callback, output)
    except Exception as e:
        _report_failure("RnnEvaluate", e)
        return False

    return True


def RnnBatchTrain(handle: Optional[int],
                  in_aggregate_size: int,
                  input_aggregate: Any,
                  ref_aggregate_size: int,
                  reference_aggregate: Any,
                  learning_rate: float) -> bool:
    """Run one batch-training step on the network behind ``handle``."""
    try:
        _handles.lookup(handle).train(in_aggregate_size, input_aggregate,
                                      ref_aggregate_size, reference_aggregate, learning_rate)
    except Exception as e:
        _report_failure("RnnBatchTrain", e)
        return False

    return True


def IsSinglePrecision() -> bool:
    """True if the engine computes in single precision."""
    return get_engine_config().precision == "single"


def live_handle_count() -> int:
    """Number of networks currently alive behind handles."""
    return len(_handles)
