"""Structured logging configuration."""

import logging
import sys
from typing import Any

import structlog
from pythonjsonlogger import jsonlogger

from inventory_engine.config import get_settings


def setup_logging() -> None:
    """Configure structured logging for the application."""
    settings = get_settings()

    # Configure standard library logging
    log_level = getattr(logging, settings.log_level)

    if settings.log_format == "json":
        # JSON logging for production
        handler = logging.StreamHandler(sys.stdout)
        formatter = jsonlogger.JsonFormatter(
            fmt="%(timestamp)s %(level)s %(name)s %(message)s",
            rename_fields={"levelname": "level", "asctime": "timestamp"},
        )
        handler.setFormatter(formatter)
    else:
        # Human-readable logging for development
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer() if settings.log_format == "json"
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


class InventoryLogger:
    """Logger for stock-affecting operations of one engine component."""

    def __init__(self, component: str):
        self.component = component
        self.logger = get_logger(component)

    def log_mutation(
        self,
        operation: str,
        product_id: str,
        order_id: str | None = None,
        duration_ms: float | None = None,
        **kwargs: Any,
    ) -> None:
        """Log a committed stock mutation."""
        log_data = {
            "component": self.component,
            "operation": operation,
            "product_id": product_id,
        }

        if order_id is not None:
            log_data["order_id"] = order_id
        if duration_ms is not None:
            log_data["duration_ms"] = duration_ms

        log_data.update(kwargs)
        self.logger.info("stock_mutation", **log_data)

    def log_compensation(
        self,
        product_id: str,
        order_id: str,
        reason: str,
        success: bool,
        **kwargs: Any,
    ) -> None:
        """Log a compensating release issued by a failed batch."""
        self.logger.info(
            "stock_compensation",
            component=self.component,
            product_id=product_id,
            order_id=order_id,
            reason=reason,
            success=success,
            **kwargs,
        )

    def log_step(
        self,
        step: str,
        product_id: str,
        order_id: str,
        duration_ms: float,
        success: bool,
        **kwargs: Any,
    ) -> None:
        """Log one item of a batch operation."""
        self.logger.info(
            "batch_step",
            component=self.component,
            step=step,
            product_id=product_id,
            order_id=order_id,
            duration_ms=duration_ms,
            success=success,
            **kwargs,
        )

    def log_error(
        self,
        error: str,
        product_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        """Log an error."""
        self.logger.error(
            "inventory_error",
            component=self.component,
            product_id=product_id,
            error=error,
            **kwargs,
        )
