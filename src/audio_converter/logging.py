import logging
import sys

from pythonjsonlogger import jsonlogger

SERVICE_NAME = "audio-converter"
_HANDLER_MARKER = "_audio_converter"
_SERVER_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error")


class ServiceJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that stamps every record with the service name."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record.setdefault("service", SERVICE_NAME)


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Routes application and server logs through one JSON stdout handler.

    Each record carries timestamp, level, logger name, message and the
    Datadog trace_id/span_id injected by ddtrace, plus whatever the caller
    passed in ``extra`` (request id, tool, stage and so on).

    Calling it again replaces the handler it installed earlier, so building
    several apps in one process does not duplicate log lines.

    Args:
        level: Log level name applied to the root and uvicorn loggers.

    Returns:
        logging.Logger: The configured root logger.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        ServiceJsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s %(trace_id)s %(span_id)s"
        )
    )
    setattr(handler, _HANDLER_MARKER, True)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [
        h for h in root_logger.handlers if not getattr(h, _HANDLER_MARKER, False)
    ]
    root_logger.addHandler(handler)

    for name in _SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.setLevel(level)
        server_logger.handlers = [handler]
        server_logger.propagate = False

    return root_logger
