"""Timeout-bounded execution of blocking collaborator calls."""

import asyncio
import logging
from typing import Any, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CollaboratorError(Exception):
    """A calendar or store call failed or did not finish in time."""

    def __init__(self, operation: str, cause: BaseException) -> None:
        super().__init__(f"{operation} failed: {cause!r}")
        self.operation = operation
        self.cause = cause


async def call_collaborator(
    operation: str, func: Callable[..., T], *args: Any, timeout: float
) -> T:
    """
    Run a blocking collaborator call in a worker thread.

    Raises:
        CollaboratorError: On timeout or any exception from ``func``.
            A timed-out call may still complete in its thread; callers
            treat it as failed regardless.
    """
    try:
        return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout=timeout)
    except asyncio.TimeoutError as exc:
        logger.error("%s timed out after %.1fs", operation, timeout)
        raise CollaboratorError(operation, exc) from exc
    except Exception as exc:
        raise CollaboratorError(operation, exc) from exc
