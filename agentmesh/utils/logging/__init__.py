"""
Logging Module.

Provides unified logging infrastructure with support for:
- Multiple backends (standard, JSON, detailed)
- Settings-driven configuration
- Duration logging with threshold-based levels
- Per-dispatch metrics collection

Version: 1.0.0
"""

from .LoggerAdaptor import LoggerAdaptor, LoggingFormat, DispatchMetrics
from .dispatch_metrics import metrics_context


__all__ = [
    "LoggerAdaptor",
    "LoggingFormat",
    "DispatchMetrics",
    "metrics_context",
]
