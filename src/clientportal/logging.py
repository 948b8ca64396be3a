import logging
from collections.abc import MutableMapping
from typing import Any

import structlog

# Driver chatter is not useful next to request logs
_QUIET_LOGGERS = ("pymongo", "pymongo.topology", "pymongo.connection", "pymongo.command", "pymongo.serverSelection")

# Keys whose values never reach a log line; session tokens are masked at the call site instead
SECRET_KEYS = frozenset({"password", "password_hash", "cron_secret", "secret", "authorization", "cookie"})
REDACTED = "[redacted]"


def redact_secrets(_logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    """Replace credential values with a placeholder before rendering."""
    for key in event_dict.keys() & SECRET_KEYS:
        if event_dict[key] is not None:
            event_dict[key] = REDACTED
    return event_dict


def build_processors(debug: bool) -> list[structlog.types.Processor]:
    renderer: structlog.types.Processor = (
        structlog.dev.ConsoleRenderer() if debug else structlog.processors.JSONRenderer()
    )
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        renderer,
    ]


def setup_logging(debug: bool) -> None:
    logging.basicConfig(level=logging.DEBUG if debug else logging.INFO, format="%(message)s")
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=build_processors(debug),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
