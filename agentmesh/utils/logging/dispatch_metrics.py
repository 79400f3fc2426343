"""
Dispatch Metrics Context.

Collects timing and outcome metrics around a single agent dispatch without
logging mid-flight. Everything is logged once, when the context exits.

Usage:
    from agentmesh.utils.logging import metrics_context

    with metrics_context(task_id=task.task_id, agent_type="compliance") as metrics:
        response = await agent.process(task, handle, cancellation)
        metrics.success = response.success
        metrics.tools_invoked = len(response.tools_invoked)

Version: 1.0.0
"""

import time
import uuid
from contextlib import contextmanager
from typing import Generator, Optional

from .LoggerAdaptor import LoggerAdaptor, DispatchMetrics


def _get_logger(name: str = "dispatch") -> LoggerAdaptor:
    """Get or create a logger instance."""
    return LoggerAdaptor.get_logger(name)


@contextmanager
def metrics_context(
    task_id: Optional[str] = None,
    agent_type: Optional[str] = None,
    conversation_id: Optional[str] = None,
    trace_id: Optional[str] = None,
    pattern: Optional[str] = None,
    round: Optional[int] = None,
    is_critical: Optional[bool] = None,
    **metadata
) -> Generator[DispatchMetrics, None, None]:
    """
    Context manager for collecting metrics during one dispatch.

    Exceptions escaping the block are recorded on the metrics and re-raised.
    If the block does not set success explicitly it is assumed successful.
    """
    metrics = DispatchMetrics(
        task_id=task_id,
        agent_type=agent_type,
        conversation_id=conversation_id,
        trace_id=trace_id or str(uuid.uuid4())[:8],
        pattern=pattern,
        round=round,
        is_critical=is_critical,
        metadata=metadata,
    )

    start_time = time.perf_counter()

    try:
        yield metrics
        if metrics.success is None:
            metrics.success = True
    except BaseException as e:
        metrics.success = False
        metrics.error = str(e) or type(e).__name__
        metrics.error_type = type(e).__name__
        raise
    finally:
        metrics.duration_ms = (time.perf_counter() - start_time) * 1000
        _get_logger().log_dispatch_metrics(metrics)
