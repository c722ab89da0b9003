import logging
import json
import contextvars
from typing import Any, Dict


request_id_ctx = contextvars.ContextVar("request_id", default="-")
image_ref_ctx = contextvars.ContextVar("image_ref", default="-")


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": request_id_ctx.get(),
            "image_ref": image_ref_ctx.get(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_json_logging(level: int | str = logging.INFO) -> None:
    root = logging.getLogger()
    try:
        root.setLevel(level)
    except (TypeError, ValueError):
        # Unknown level names (e.g. a typo in LOG_LEVEL) fall back to INFO
        root.setLevel(logging.INFO)
    # Clear existing handlers in case of reloads
    for h in list(root.handlers):
        root.removeHandler(h)
    handler = logging.StreamHandler()
    handler.setFormatter(JsonLogFormatter())
    root.addHandler(handler)
