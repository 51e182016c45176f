import logging
import os
from typing import Optional

_DEFAULT_LEVEL = os.getenv("FFBE_RIPS_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def configure_logging(verbose: bool = False, level: Optional[str] = None) -> None:
    if verbose:
        desired_level = logging.DEBUG
    else:
        desired_level = getattr(logging, (level or _DEFAULT_LEVEL).upper(), logging.INFO)

    root = logging.getLogger()
    if getattr(configure_logging, "_configured", False):
        root.setLevel(desired_level)
        return

    for handler in list(root.handlers):
        root.removeHandler(handler)

    root.setLevel(desired_level)
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(stream_handler)

    configure_logging._configured = True  # type: ignore[attr-defined]
    root.debug("Logging configured at %s", logging.getLevelName(desired_level))
