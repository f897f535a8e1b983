"""
Logging Module
==============

Structured logging using structlog with JSON output for production
and colored console output for development.

Usage:
    from shared.logging import get_logger, setup_logging

    # Setup at application start
    setup_logging()

    # Get logger for a module
    logger = get_logger(__name__)

    # Log with context
    logger.info("workflow_transition_committed", owner_id="123", to_status="active")
    logger.warning("workflow_transition_rejected", error_code="invalidTransition")
"""

from shared.logging.logger import (
    AUDIT_CHANNEL,
    bind_context,
    clear_context,
    get_audit_logger,
    get_logger,
    setup_audit_channel,
    setup_logging,
    unbind_context,
)


__all__ = [
    "AUDIT_CHANNEL",
    "bind_context",
    "clear_context",
    "get_audit_logger",
    "get_logger",
    "setup_audit_channel",
    "setup_logging",
    "unbind_context",
]
