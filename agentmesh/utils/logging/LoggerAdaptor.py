import json
import logging
import logging.handlers
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from agentmesh.config import Defaults, get_settings


class LoggingFormat(str, Enum):
    """Supported logging backends."""
    STANDARD = "standard"
    JSON = "json"
    DETAILED = "detailed"


def _default_config() -> dict[str, Any]:
    settings = get_settings()
    return {
        "backend": settings.log_backend,
        "level": settings.log_level,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            },
        },
        "handlers": {
            "console": {"type": "console", "level": settings.log_level, "formatter": "default"},
        },
        "duration_logging": {
            "slow_threshold_seconds": Defaults.SLOW_TASK_THRESHOLD_S,
            "warn_threshold_seconds": Defaults.WARN_TASK_THRESHOLD_S,
            "error_threshold_seconds": Defaults.ERROR_TASK_THRESHOLD_S,
        },
        "dispatch_logging": {"enabled": True},
    }


class LoggerAdaptor:
    """
    Unified Logger Adaptor that provides a consistent interface across different logging mechanisms.

    Configuration comes from the engine settings (AGENTMESH_LOG_LEVEL,
    AGENTMESH_LOG_BACKEND) unless a config dictionary is supplied.

    Features:
    - Multiple logging backends (standard, JSON, detailed)
    - Context management for structured logging
    - Duration logging with threshold-based levels
    - Dispatch metrics logging for orchestrated agent calls

    Usage:
    ```python
    from agentmesh.utils.logging import LoggerAdaptor

    logger = LoggerAdaptor.get_logger("orchestrator")

    custom_config = {"backend": "json", "level": "DEBUG"}
    logger = LoggerAdaptor.get_logger("orchestrator", config=custom_config)

    logger.info("Plan accepted", conversation_id="c-1", tasks=3)

    logger.set_context(conversation_id="c-1")
    logger.info("Dispatching task")
    ```

    Args:
        name: Logger name (for identification)
        config: Optional configuration dictionary. If provided, this config will be used
               instead of the settings-derived default.
    """

    _instances = {}
    _config = None

    @classmethod
    def clear_instances(cls):
        """
        Clear all cached logger instances.

        This is useful for testing or when you want to force recreation
        of logger instances with new configurations.
        """
        for instance in cls._instances.values():
            instance.shutdown()
        cls._instances.clear()
        cls._config = None

    def __init__(self, name: str = "default", config: dict[str, Any] = None):
        self.name = name

        if config is not None:
            LoggerAdaptor._config = {**_default_config(), **config}
            self.config_source = "provided_config"
        else:
            if LoggerAdaptor._config is None:
                LoggerAdaptor._config = _default_config()
            self.config_source = "settings"

        self.logger = None
        self.context = {}  # For structured logging context

        self._initialize_logger()

    @classmethod
    def get_logger(
            cls,
            name: str = "default",
            config: dict[str, Any] = None) -> 'LoggerAdaptor':
        """
        Get or create a logger instance (singleton pattern per name).

        Args:
            name: Logger name (for identification)
            config: Optional configuration dictionary.

        Returns:
            LoggerAdaptor instance
        """
        instance_key = f"agentmesh.{name}"
        if instance_key not in cls._instances or config is not None:
            cls._instances[instance_key] = cls(instance_key, config)
        return cls._instances[instance_key]

    def _initialize_logger(self):
        """Initialize the logger based on configuration."""
        config = LoggerAdaptor._config
        self.backend = config.get('backend', LoggingFormat.STANDARD.value).lower()

        self.logger = logging.getLogger(self.name)
        self._configure_logger(config)

    def _configure_logger(self, config: dict[str, Any]):
        """Configure the logger based on configuration."""
        self.logger.handlers.clear()

        level_str = config.get('level', 'INFO').upper()
        self.logger.setLevel(getattr(logging, level_str))

        formatters = self._create_formatters(config.get('formatters', {}))

        handlers_config = config.get('handlers', {})
        for handler_config in handlers_config.values():
            handler = self._create_handler(handler_config, formatters)
            if handler:
                self.logger.addHandler(handler)

    def _create_formatters(self,
                           formatters_config: dict[str,
                                                   Any]) -> dict[str,
                                                                 logging.Formatter]:
        """Create formatters from configuration."""
        formatters = {}
        for name, format_config in formatters_config.items():
            format_string = format_config.get(
                'format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s')
            date_format = format_config.get('datefmt')
            formatters[name] = logging.Formatter(format_string, date_format)
        return formatters

    def _create_handler(
        self,
        handler_config: dict[str, Any],
        formatters: dict[str, logging.Formatter],
    ) -> logging.Handler | None:
        """Create a handler from configuration."""
        handler_type = handler_config.get('type')
        formatter_name = handler_config.get('formatter', 'default')
        level_str = handler_config.get('level', 'INFO').upper()

        handler = None

        if handler_type == 'console':
            handler = logging.StreamHandler()
        elif handler_type == 'file':
            filepath = self._get_log_filepath(handler_config.get('filename', 'agentmesh.log'))
            handler = logging.FileHandler(filepath)
        elif handler_type == 'rotating_file':
            filepath = self._get_log_filepath(handler_config.get('filename', 'agentmesh.log'))
            max_bytes = handler_config.get('max_bytes', 10485760)  # 10MB
            backup_count = handler_config.get('backup_count', 5)
            handler = logging.handlers.RotatingFileHandler(
                filepath, maxBytes=max_bytes, backupCount=backup_count)

        if handler:
            handler.setLevel(getattr(logging, level_str))
            if formatter_name in formatters:
                handler.setFormatter(formatters[formatter_name])

        return handler

    def _get_log_filepath(self, filename: str) -> str:
        """Get the full filepath for log files based on configuration."""
        log_directory = LoggerAdaptor._config.get('log_directory', './logs')

        if log_directory.startswith('~/'):
            log_dir = Path.home() / log_directory[2:]
        else:
            log_dir = Path(log_directory)

        log_dir.mkdir(parents=True, exist_ok=True)
        return str(log_dir / filename)

    def _format_message(self, *args) -> str:
        """Format message from multiple arguments."""
        if not args:
            return ""
        if len(args) == 1 and isinstance(args[0], str):
            return args[0]
        return " ".join(str(arg) for arg in args)

    def _log_message(self, level: str, *args, **kwargs):
        """Log message based on backend type."""
        message = self._format_message(*args)

        # Combine persistent context with immediate context
        all_context = {**self.context, **kwargs}

        if self.backend == LoggingFormat.JSON.value:
            self._log_json(level, message, **all_context)
        elif self.backend == LoggingFormat.DETAILED.value:
            self._log_detailed(level, message, **all_context)
        else:
            self._log_standard(level, message, **all_context)

    def _log_standard(self, level: str, message: str, **kwargs):
        """Log using standard Python logging."""
        if kwargs:
            extra_info = " ".join([f"{k}={v}" for k, v in kwargs.items()])
            full_message = f"{message} [{extra_info}]"
        else:
            full_message = message

        self.logger.log(getattr(logging, level.upper()), full_message)

    def _log_json(self, level: str, message: str, **kwargs):
        """Log as JSON format."""
        log_data = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': level.upper(),
            'logger': self.name,
            'message': message
        }
        log_data.update(kwargs)

        self.logger.log(getattr(logging, level.upper()), json.dumps(log_data, default=str))

    def _log_detailed(self, level: str, message: str, **kwargs):
        """Log with detailed context as formatted text."""
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        detailed_message = f"[{timestamp}] {level.upper()} [{self.name}] {message}"

        if kwargs:
            context_parts = [f"{k}={v}" for k, v in kwargs.items()]
            detailed_message += f" | Context: {', '.join(context_parts)}"

        self.logger.log(getattr(logging, level.upper()), detailed_message)

    def debug(self, *args, **kwargs):
        """Log debug message."""
        self._log_message('DEBUG', *args, **kwargs)

    def info(self, *args, **kwargs):
        """Log info message."""
        self._log_message('INFO', *args, **kwargs)

    def warning(self, *args, **kwargs):
        """Log warning message."""
        self._log_message('WARNING', *args, **kwargs)

    def error(self, *args, **kwargs):
        """Log error message."""
        self._log_message('ERROR', *args, **kwargs)

    def critical(self, *args, **kwargs):
        """Log critical message."""
        self._log_message('CRITICAL', *args, **kwargs)

    def set_context(self, **kwargs):
        """Set persistent context for structured logging."""
        self.context.update(kwargs)

    def clear_context(self):
        """Clear all persistent context."""
        self.context.clear()

    def log_duration(self, operation_name: str, duration_seconds: float, **kwargs) -> None:
        """
        Log the duration of an operation.

        Args:
            operation_name: Name/description of the operation
            duration_seconds: Duration in seconds
            **kwargs: Additional context for the log entry
        """
        duration_ms = duration_seconds * 1000
        if duration_ms < 1000:
            duration_str = f"{duration_ms:.2f}ms"
        elif duration_ms < 60000:
            duration_str = f"{duration_ms/1000:.2f}s"
        else:
            minutes = int(duration_ms // 60000)
            seconds = (duration_ms % 60000) / 1000
            duration_str = f"{minutes}m{seconds:.1f}s"

        log_kwargs = {
            'operation': operation_name,
            'duration_ms': round(duration_ms, 2),
            **kwargs
        }
        self._log_message(
            self._get_duration_log_level(duration_seconds),
            f"Operation '{operation_name}' completed in {duration_str}",
            **log_kwargs,
        )

    def _get_duration_log_level(self, duration_seconds: float) -> str:
        """
        Determine the appropriate log level based on duration thresholds.

        Returns:
            str: Appropriate log level ('DEBUG', 'INFO', 'WARNING', 'ERROR')
        """
        duration_config = LoggerAdaptor._config.get('duration_logging', {})

        slow_threshold = duration_config.get('slow_threshold_seconds', Defaults.SLOW_TASK_THRESHOLD_S)
        warn_threshold = duration_config.get('warn_threshold_seconds', Defaults.WARN_TASK_THRESHOLD_S)
        error_threshold = duration_config.get('error_threshold_seconds', Defaults.ERROR_TASK_THRESHOLD_S)

        if duration_seconds >= error_threshold:
            return 'ERROR'
        elif duration_seconds >= warn_threshold:
            return 'WARNING'
        elif duration_seconds >= slow_threshold:
            return 'INFO'
        else:
            return 'DEBUG'

    def shutdown(self):
        """Shutdown the logger and cleanup resources."""
        if self.logger:
            for handler in self.logger.handlers[:]:
                handler.flush()
                handler.close()
                self.logger.removeHandler(handler)
        self.context.clear()

    @property
    def level(self) -> str:
        """Get current log level."""
        return LoggerAdaptor._config.get("level", "INFO")

    # =========================================================================
    # Dispatch Metrics Support
    # =========================================================================

    def log_dispatch_metrics(self, metrics: 'DispatchMetrics') -> None:
        """
        Log the metrics collected for one dispatched agent task.

        Duration is logged at a level chosen from the duration thresholds;
        failures are logged at ERROR and cancellations at WARNING.
        """
        if not metrics:
            return

        dispatch_config = LoggerAdaptor._config.get('dispatch_logging', {})
        if not dispatch_config.get('enabled', True):
            return

        log_context = metrics.to_log_dict(dispatch_config)
        name = metrics.agent_type or metrics.task_id or 'unknown'

        if metrics.duration_ms is not None:
            level = self._get_duration_log_level(metrics.duration_ms / 1000)
            self._log_message(
                level,
                f"Agent '{name}' finished in {metrics.duration_ms:.2f}ms",
                **log_context,
            )

        if metrics.cancelled:
            self.warning(f"Agent '{name}' was cancelled", **log_context)
        elif metrics.error:
            self.error(
                f"Agent '{name}' failed: {metrics.error}",
                error_type=metrics.error_type,
                **log_context,
            )


# =============================================================================
# DISPATCH METRICS DATACLASS
# =============================================================================


@dataclass
class DispatchMetrics:
    """
    Dataclass for collecting metrics about one agent dispatch.

    Metrics accumulate during the call and are logged once at the end via
    LoggerAdaptor.log_dispatch_metrics().

    Usage:
        metrics = DispatchMetrics(task_id="t-1", agent_type="compliance")
        metrics.duration_ms = 1234.5
        metrics.success = True
        logger.log_dispatch_metrics(metrics)
    """
    # Identification
    task_id: Optional[str] = None
    agent_type: Optional[str] = None
    conversation_id: Optional[str] = None
    trace_id: Optional[str] = None
    pattern: Optional[str] = None
    round: Optional[int] = None

    # Call details
    is_critical: Optional[bool] = None
    tools_invoked: Optional[int] = None
    timed_out: bool = False
    cancelled: bool = False

    # Duration (in milliseconds)
    duration_ms: Optional[float] = None

    # Status
    success: Optional[bool] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    # Extra metadata
    metadata: dict = field(default_factory=dict)

    def to_log_dict(self, config: dict = None) -> dict:
        """
        Convert metrics to log context dictionary.

        Args:
            config: dispatch_logging config dict

        Returns:
            Dictionary suitable for structured logging
        """
        config = config or {}
        ctx = {}

        if config.get('include_trace_id', True) and self.trace_id:
            ctx['trace_id'] = self.trace_id
        if self.task_id:
            ctx['task_id'] = self.task_id
        if self.agent_type:
            ctx['agent_type'] = self.agent_type
        if self.conversation_id:
            ctx['conversation_id'] = self.conversation_id
        if self.pattern:
            ctx['pattern'] = self.pattern
        if self.round is not None:
            ctx['round'] = self.round
        if self.is_critical is not None:
            ctx['is_critical'] = self.is_critical
        if self.tools_invoked is not None:
            ctx['tools_invoked'] = self.tools_invoked
        if self.duration_ms is not None:
            ctx['duration_ms'] = round(self.duration_ms, 2)
        if self.timed_out:
            ctx['timed_out'] = True
        if self.cancelled:
            ctx['cancelled'] = True
        if self.success is not None:
            ctx['success'] = self.success

        if self.metadata:
            ctx.update(self.metadata)

        return ctx
