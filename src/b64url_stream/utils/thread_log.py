import logging
import sys

# every stage runs on its own named thread, so the thread name is in the format
LOG_FORMAT = "[%(threadName)s] %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger("b64url_stream.stage")


def configure_logging(level=logging.WARNING, stream=None) -> logging.Logger:
    """Attach one stderr handler to the package logger. Safe to call more than once."""
    root = logging.getLogger("b64url_stream")
    if not root.handlers:
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(level)
    return root


def log_start(stage_name):
    logger.debug("[%s] START", stage_name)


def log_end(stage_name, status="done", detail=None):
    if status == "done":
        logger.debug("[%s] DONE %s", stage_name, detail or "")
    elif status == "aborted":
        logger.info("[%s] ABORTED %s", stage_name, detail or "")
    else:
        logger.warning("[%s] %s %s", stage_name, status.upper(), detail or "")
