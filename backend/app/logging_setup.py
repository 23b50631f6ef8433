import logging
import os

from app.config import LOG_LEVEL


class _ExtraFormatter(logging.Formatter):
    """Formatter that appends extra={} fields to the log line for local visibility."""
    _BASE_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__)

    def format(self, record):
        msg = super().format(record)
        extras = {k: v for k, v in record.__dict__.items()
                  if k not in self._BASE_ATTRS and k not in ("message", "asctime")}
        if extras:
            msg += f" | {extras}"
        return msg


_configured = False


def configure_logging() -> None:
    """
    Always configure a stdout handler so logs appear in the local terminal.
    On Cloud Run (K_SERVICE is set), additionally route to Cloud Logging.
    Safe to call more than once.
    """
    global _configured
    if _configured:
        return
    _configured = True

    handler = logging.StreamHandler()
    handler.setFormatter(_ExtraFormatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logging.root.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    logging.root.addHandler(handler)

    if os.environ.get("K_SERVICE"):
        try:
            import google.cloud.logging
            cloud_logging_client = google.cloud.logging.Client()
            cloud_logging_client.setup_logging()
        except Exception as e:
            logging.warning("cloud_logging_setup_failed: %s", e)
