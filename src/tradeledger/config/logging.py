"""
Structured logging configuration using structlog.

Development gets colored console output; staging and production emit JSON
lines so ledger events (invoice_created, cheque_returned, ...) can be
shipped to a log store and replayed during audits.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

from tradeledger.config.settings import get_settings

# Event keys holding currency amounts
MONEY_KEYS = frozenset({
    "amount",
    "balance",
    "balance_delta",
    "difference",
    "drift",
    "expected",
    "grand_total",
    "paid_amount",
    "stored",
    "total",
})


def add_app_context(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Stamp every event with app name, version and environment."""
    settings = get_settings()
    event_dict["app"] = settings.app_name
    event_dict["version"] = settings.app_version
    event_dict["environment"] = settings.environment
    return event_dict


def round_money(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Render float amounts to cents so 999.9999999 does not reach the logs."""
    for key in MONEY_KEYS.intersection(event_dict):
        value = event_dict[key]
        if isinstance(value, float):
            event_dict[key] = round(value, 2)
    return event_dict


def configure_logging(json_logs: bool | None = None) -> None:
    settings = get_settings()
    if json_logs is None:
        json_logs = settings.log_json
    if json_logs is None:
        json_logs = settings.environment != "development"

    shared: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        round_money,
        add_app_context,
    ]
    renderer: list[Processor] = (
        [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
        if json_logs
        else [structlog.dev.ConsoleRenderer(colors=True)]
    )

    structlog.configure(
        processors=shared + renderer,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
    )
    for noisy in ("aiosqlite", "httpx", "httpcore", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def bind_request_context(**values: Any) -> None:
    """Attach request_id, user_id and business_id to every event in this context."""
    structlog.contextvars.bind_contextvars(**values)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
