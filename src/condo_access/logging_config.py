"""structlog setup shared by the API process and the management CLI.

Every event carries the request/user/tenant bound through
``structlog.contextvars``. Credentials never reach the output: bearer
tokens, JWT secrets and device-session tokens are masked, including
inside nested mappings such as captured request headers.
"""

import logging
import sys
import uuid
from collections.abc import Mapping
from typing import Any

import structlog

REDACTED = "***REDACTED***"

# Exact key names plus suffixes; ``refresh_token`` and ``jwt_secret`` match.
_MASKED_NAMES: frozenset[str] = frozenset({"authorization", "password", "cookie"})
_MASKED_SUFFIXES: tuple[str, ...] = ("token", "secret")

_CHATTY_LOGGERS: dict[str, int] = {
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
}


def is_masked_key(key: str) -> bool:
    name = key.lower().replace("-", "_")
    return name in _MASKED_NAMES or name.endswith(_MASKED_SUFFIXES)


def _mask(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {
            k: REDACTED if is_masked_key(str(k)) else _mask(v)
            for k, v in value.items()
        }
    return value


def mask_credentials(
    logger: logging.Logger,
    method_name: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    for key, value in list(event_dict.items()):
        if is_masked_key(key):
            event_dict[key] = REDACTED
        elif isinstance(value, Mapping):
            event_dict[key] = _mask(value)
    return event_dict


def stringify_ids(
    logger: logging.Logger,
    method_name: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    """Render tenant/user UUIDs the same way in console and JSON output."""
    for key, value in event_dict.items():
        if isinstance(value, uuid.UUID):
            event_dict[key] = str(value)
    return event_dict


def _renderer(json_output: bool) -> structlog.types.Processor:
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def configure_logging(
    environment: str = "development",
    log_level: str = "INFO",
    *,
    json_output: bool | None = None,
) -> None:
    """Install the processor chain and route stdlib logging through it.

    Args:
        environment: ``production`` selects JSON lines with structured
            tracebacks; anything else renders for a terminal.
        log_level: Root level name (DEBUG, INFO, WARNING, ...).
        json_output: Force the renderer regardless of ``environment``.
    """
    as_json = environment == "production" if json_output is None else json_output

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        stringify_ids,
        mask_credentials,
    ]
    if as_json:
        pre_chain.append(structlog.processors.dict_tracebacks)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(as_json),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(log_level.upper())

    for name, level in _CHATTY_LOGGERS.items():
        logging.getLogger(name).setLevel(level)
