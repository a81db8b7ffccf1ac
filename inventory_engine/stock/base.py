"""Common functionality for engine components that run batches of steps."""

import time
from typing import Any, Awaitable, Callable

from pydantic import BaseModel

from inventory_engine.config import Settings, get_settings
from inventory_engine.exceptions import InventoryError
from inventory_engine.models.results import ItemOutcome
from inventory_engine.utils.logging import InventoryLogger
from inventory_engine.utils.tracing import BatchTracer


class BaseComponent:
    """Base class for engine components."""

    def __init__(self, component_id: str, settings: Settings | None = None):
        self.component_id = component_id
        self.settings = settings or get_settings()
        self.logger = InventoryLogger(component_id)

    async def execute_step(
        self,
        step: str,
        product_id: str,
        order_id: str,
        func: Callable[..., Awaitable[Any]],
        params: dict[str, Any],
        tracer: BatchTracer | None = None,
        quantity: int | None = None,
    ) -> ItemOutcome:
        """
        Run one per-item step of a batch and capture its outcome.

        Errors never escape: a failing item is reported in the returned
        outcome so the rest of the batch can proceed.

        Args:
            step: Name of the step (reserve, confirm, release...)
            product_id: Product the step acts on
            order_id: Order the batch belongs to
            func: Coroutine function performing the step
            params: Keyword arguments for ``func``
            tracer: Optional tracer collecting step timings
            quantity: Quantity the step concerns, echoed in the outcome

        Returns:
            ItemOutcome with the step's result or error
        """
        start_time = time.time()

        try:
            result = await func(**params)
            success, error, error_type = True, None, None
        except InventoryError as e:
            result, success, error, error_type = None, False, e.message, e.kind
        except Exception as e:
            # Storage and collaborator failures are reported per item
            result, success, error, error_type = None, False, str(e), type(e).__name__

        execution_time_ms = (time.time() - start_time) * 1000

        self.logger.log_step(
            step=step,
            product_id=product_id,
            order_id=order_id,
            duration_ms=execution_time_ms,
            success=success,
            error=error,
        )
        if tracer:
            tracer.add_event(
                step,
                product_id,
                success,
                duration_ms=execution_time_ms,
                error_type=error_type,
            )

        if isinstance(result, BaseModel):
            result = result.model_dump(mode="json")

        return ItemOutcome(
            product_id=product_id,
            success=success,
            quantity=quantity,
            result=result,
            error=error,
            error_type=error_type,
            execution_time_ms=execution_time_ms,
        )
