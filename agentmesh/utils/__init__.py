"""
Shared utilities: serialization, clocks, cancellation and logging.
"""

from .serialization import SerializationError, coerce_value, dumps_value, loads_value
from .cancellation import CancellationToken, OperationCancelledError, ensure_token
from .clock import utc_now

__all__ = [
    "SerializationError",
    "coerce_value",
    "dumps_value",
    "loads_value",
    "CancellationToken",
    "OperationCancelledError",
    "ensure_token",
    "utc_now",
]
