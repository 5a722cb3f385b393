"""Logging and observability utilities for PlanSync.

This module provides structured logging, performance monitoring,
and observability hooks for the plan/board synchronization engine.
"""

from __future__ import annotations

import json
import time
import logging as std_logging
from collections import deque
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Deque, Dict, List, Optional, Union
from functools import wraps


def setup_logging(log_level: Union[str, int] = std_logging.INFO, log_file: Optional[Path] = None) -> None:
    """Setup structured logging for PlanSync."""

    logger = std_logging.getLogger("plansync")
    logger.setLevel(log_level)

    # Clear existing handlers
    logger.handlers.clear()

    detailed_formatter = std_logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(module)s:%(funcName)s:%(lineno)d - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    console_handler = std_logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(detailed_formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = std_logging.FileHandler(log_file)
        file_handler.setLevel(std_logging.DEBUG)
        file_handler.setFormatter(JsonFormatter())
        logger.addHandler(file_handler)

    logger.info("PlanSync logging initialized")


class JsonFormatter(std_logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: std_logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_fields"):
            log_entry.update(record.extra_fields)

        return json.dumps(log_entry, default=str)


class PerformanceMonitor:
    """Keep timing metrics for sync operations in memory.

    Only the most recent ``max_samples`` values are kept per metric.
    """

    def __init__(self, max_samples: int = 500):
        self.max_samples = max_samples
        self.metrics: Dict[str, Deque[Dict[str, Any]]] = {}

    def record_metric(self, name: str, value: Any, tags: Optional[Dict[str, str]] = None) -> None:
        """Record a performance metric."""
        metric = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "name": name,
            "value": value,
            "tags": tags or {}
        }

        self.metrics.setdefault(name, deque(maxlen=self.max_samples)).append(metric)

        logger = std_logging.getLogger("plansync.performance")
        logger.debug(f"Metric recorded: {name}={value}", extra={"extra_fields": metric})

    def get_metrics(self, name: Optional[str] = None) -> Dict[str, List[Dict[str, Any]]]:
        """Get recorded metrics."""
        if name:
            return {name: list(self.metrics.get(name, ()))}
        return {key: list(samples) for key, samples in self.metrics.items()}

    def clear(self) -> None:
        self.metrics.clear()


performance_monitor = PerformanceMonitor()


def log_performance(operation_name: str):
    """Decorator to log performance metrics for operations."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.time()
            logger = std_logging.getLogger("plansync.performance")

            try:
                result = func(*args, **kwargs)

                duration = time.time() - start_time
                performance_monitor.record_metric(
                    f"{operation_name}_duration",
                    duration,
                    {"status": "success"}
                )

                logger.debug(
                    f"Completed operation: {operation_name} in {duration:.3f}s",
                    extra={"extra_fields": {
                        "operation": operation_name,
                        "duration": duration,
                        "status": "success"
                    }}
                )

                return result

            except Exception as e:
                duration = time.time() - start_time
                performance_monitor.record_metric(
                    f"{operation_name}_duration",
                    duration,
                    {"status": "error", "error_type": type(e).__name__}
                )

                logger.error(
                    f"Failed operation: {operation_name} after {duration:.3f}s - {str(e)}",
                    extra={"extra_fields": {
                        "operation": operation_name,
                        "duration": duration,
                        "status": "error",
                        "error_type": type(e).__name__,
                        "error_message": str(e)
                    }}
                )

                raise

        return wrapper
    return decorator


@contextmanager
def log_operation(operation_name: str, **extra_fields):
    """Context manager to log operations with custom fields."""
    logger = std_logging.getLogger("plansync.operations")
    start_time = time.time()

    logger.debug(f"Starting operation: {operation_name}", extra={"extra_fields": {
        "operation": operation_name,
        "status": "started",
        **extra_fields
    }})

    try:
        yield

        duration = time.time() - start_time
        logger.debug(f"Completed operation: {operation_name} in {duration:.3f}s", extra={"extra_fields": {
            "operation": operation_name,
            "status": "completed",
            "duration": duration,
            **extra_fields
        }})

    except Exception as e:
        duration = time.time() - start_time
        logger.warning(f"Failed operation: {operation_name} after {duration:.3f}s - {str(e)}", extra={"extra_fields": {
            "operation": operation_name,
            "status": "failed",
            "duration": duration,
            "error_type": type(e).__name__,
            "error_message": str(e),
            **extra_fields
        }})

        raise


class ObservabilityHooks:
    """Observability hooks for project sync events."""

    def __init__(self):
        self.hooks: Dict[str, List[Callable[..., Any]]] = {}
        self.logger = std_logging.getLogger("plansync.observability")

    def register_hook(self, event_type: str, callback: Callable[..., Any]) -> None:
        """Register a callback for a specific event type."""
        self.hooks.setdefault(event_type, []).append(callback)
        self.logger.debug(f"Registered hook for event: {event_type}")

    def unregister_hook(self, event_type: str, callback: Callable[..., Any]) -> None:
        callbacks = self.hooks.get(event_type, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def trigger_hooks(self, event_type: str, **data) -> None:
        """Trigger all callbacks for a specific event type."""
        if event_type in self.hooks:
            self.logger.debug(f"Triggering {len(self.hooks[event_type])} hooks for event: {event_type}")
            for hook in self.hooks[event_type]:
                try:
                    hook(**data)
                except Exception as e:
                    self.logger.error(f"Hook failed for event {event_type}: {e}")

    def log_project_event(self, event_type: str, project_id: Optional[str] = None, **data) -> None:
        """Log a project event and trigger hooks."""
        event_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type,
            "project_id": project_id,
            **data
        }

        self.logger.info(f"Project event: {event_type}", extra={"extra_fields": event_data})

        # event_type is passed positionally, so hooks only receive the payload
        hook_data = {k: v for k, v in event_data.items() if k != "event_type"}
        self.trigger_hooks(event_type, **hook_data)


observability_hooks = ObservabilityHooks()


def log_error_with_context(error: Exception, context: Dict[str, Any], **extra_fields):
    """Log an error with rich context information."""
    logger = std_logging.getLogger("plansync.errors")

    error_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "error_type": type(error).__name__,
        "error_message": str(error),
        "context": context,
        **extra_fields
    }

    logger.error(
        f"Error in {context.get('operation', 'unknown operation')}: {str(error)}",
        extra={"extra_fields": error_data},
    )


# Convenience functions for common events
def log_plan_synced(project_id: str, task_count: int, changed: bool, **extra_fields):
    """Log a text-to-board synchronization."""
    observability_hooks.log_project_event(
        "plan_synced", project_id=project_id, task_count=task_count, changed=changed, **extra_fields
    )


def log_plan_regenerated(project_id: str, task_count: int, **extra_fields):
    """Log a board-to-text regeneration."""
    observability_hooks.log_project_event(
        "plan_regenerated", project_id=project_id, task_count=task_count, **extra_fields
    )


def log_task_update(project_id: str, task_id: str, action: str, **extra_fields):
    """Log a structured task mutation."""
    observability_hooks.log_project_event(
        f"task_{action.lower()}", project_id=project_id, task_id=task_id, **extra_fields
    )


def log_sub_project_link(project_id: str, task_id: str, sub_project_id: str, **extra_fields):
    """Log a task being linked to a sub-project."""
    observability_hooks.log_project_event(
        "sub_project_linked",
        project_id=project_id,
        task_id=task_id,
        sub_project_id=sub_project_id,
        **extra_fields
    )


def log_comment_event(project_id: str, comment_id: str, action: str, **extra_fields):
    """Log a comment being added, changed or removed."""
    observability_hooks.log_project_event(
        f"comment_{action.lower()}", project_id=project_id, comment_id=comment_id, **extra_fields
    )


def log_document_update(project_id: str, doc_type: str, changed: bool, **extra_fields):
    """Log an edit to one of a project's documents."""
    observability_hooks.log_project_event(
        "document_updated", project_id=project_id, doc_type=doc_type, changed=changed, **extra_fields
    )
