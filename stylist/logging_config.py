import json
import logging
import os

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Request-level chatter from the HTTP stack underneath the Gemini SDK.
NOISY_LOGGERS = ("httpx", "httpcore", "google_genai")


def setup_logging() -> None:
    level = os.environ.get("LOG_LEVEL", "INFO").upper()
    if os.environ.get("JSON_LOGS", "0") == "1":
        handler: logging.Handler = JSONLogHandler()
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.basicConfig(level=level, handlers=[handler], force=True)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, logging.getLogger().level))


class JSONLogHandler(logging.StreamHandler):
    """One JSON object per line: time, level, logger, message and any traceback."""

    def __init__(self, stream=None):
        super().__init__(stream)
        self.setFormatter(logging.Formatter(LOG_FORMAT))

    def emit(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        try:
            msg = {
                "time": self.formatter.formatTime(record),
                "level": record.levelname,
                "logger": record.name,
                "message": record.getMessage(),
            }
            if record.exc_info:
                msg["exc_info"] = self.formatter.formatException(record.exc_info)
            self.stream.write(json.dumps(msg) + self.terminator)
            self.flush()
        except Exception:
            self.handleError(record)
