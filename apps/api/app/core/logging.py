import logging
import sys

from apps.api.app.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str = ""):
    """Attach a single stdout handler to the root logger."""
    root = logging.getLogger()
    if not any(getattr(h, "_prop_risk_handler", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._prop_risk_handler = True
        root.addHandler(handler)
    root.setLevel((level or settings.LOG_LEVEL).upper())
