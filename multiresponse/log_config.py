import atexit
import json
import logging
import logging.handlers
import queue
from typing import Any
from typing import Dict
from typing import Optional
from typing import Union

# Records are formatted and written off the request path
_records: queue.SimpleQueue = queue.SimpleQueue()
queue_handler = logging.handlers.QueueHandler(_records)
console_handler = logging.StreamHandler()

listener = logging.handlers.QueueListener(
    _records, console_handler, respect_handler_level=True
)
listener.start()
atexit.register(listener.stop)

# Own logger, leaves root and uvicorn alone
logger = logging.getLogger("multiresponse")
logger.setLevel(logging.DEBUG)
logger.addHandler(queue_handler)

TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# `extra` key holding the failure details of a rejected negotiation
CONTEXT_KEY = "negotiation"


def negotiation_context(
    kind: str,
    status_code: int,
    format: Optional[str] = None,
    header_value: Optional[str] = None,
) -> Dict[str, Any]:
    """`extra=` mapping for a log call about a negotiation outcome."""
    context: Dict[str, Any] = {"kind": kind, "status": status_code}
    if format is not None:
        context["format"] = format
    if header_value is not None:
        context["header"] = header_value
    return {CONTEXT_KEY: context}


class TextFormatter(logging.Formatter):
    """Plain lines, with any negotiation context appended as key=value."""

    def __init__(self) -> None:
        super().__init__(TEXT_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = getattr(record, CONTEXT_KEY, None)
        if context:
            line += " " + " ".join(f"{k}={v!r}" for k, v in context.items())
        return line


class JSONFormatter(logging.Formatter):
    """One JSON object per record; negotiation context is merged in."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        entry.update(getattr(record, CONTEXT_KEY, None) or {})
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def configure_logging(
    json_logging: bool = False, level: Union[int, str, None] = None
) -> None:
    """
    Pick the console format at startup. `level` filters what reaches the
    console; the logger itself keeps emitting everything to the queue.
    """
    console_handler.setFormatter(
        JSONFormatter() if json_logging else TextFormatter()
    )
    if level is not None:
        console_handler.setLevel(level)
