"""Customer-id logging context for tracing a conversation across modules.

Every inbound message is processed under the sender's identifier, so
log lines from the state machine and the orchestrators can be grouped
per customer.

Usage:
    from salon_booking.logging_context import get_customer_logger, set_customer_id

    set_customer_id("5511999990000@c.us")
    logger = get_customer_logger(__name__)
    logger.info("Processing message")
"""

import logging
from contextvars import ContextVar

_customer_id: ContextVar[str] = ContextVar("customer_id", default="NO_CUSTOMER")


def set_customer_id(customer_id: str) -> None:
    """Set the customer identifier for the current async context."""
    _customer_id.set(customer_id)


def get_customer_id() -> str:
    """Retrieve the current customer identifier."""
    return _customer_id.get()


class CustomerIdFilter(logging.Filter):
    """Injects customer_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.customer_id = _customer_id.get()  # type: ignore[attr-defined]
        return True


def get_customer_logger(name: str) -> logging.Logger:
    """Return a logger with the CustomerIdFilter attached.

    The filter adds ``customer_id`` to each record so formatters can
    include ``%(customer_id)s`` in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, CustomerIdFilter) for f in logger.filters):
        logger.addFilter(CustomerIdFilter())
    return logger
