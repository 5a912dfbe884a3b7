import logging
import sys

import structlog

_HANDLER_NAME = "filterline_handler"

_structlog_configured = False


def configure_logging(level: int = logging.INFO) -> None:
    """Sends JSON-formatted structlog events to stderr through stdlib logging.

    Calling it again only changes the level; the handler is installed once.
    """
    global _structlog_configured

    root_logger = logging.getLogger()
    if _HANDLER_NAME not in [h.get_name() for h in root_logger.handlers]:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(message)s"))
        handler.set_name(_HANDLER_NAME)
        root_logger.addHandler(handler)
    root_logger.setLevel(level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    _structlog_configured = True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Returns a structlog logger for the given name.

    If nobody configured structlog yet, a default configuration is applied
    so that events still reach the standard library's root logger.
    """
    if not _structlog_configured and not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(name)
