from __future__ import annotations

import logging
from pathlib import Path
from typing import Final


DEFAULT_LOG_FORMAT: Final[str] = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: int = logging.INFO, log_dir: str | None = None) -> None:
    """Configure standard library logging for the report CLI.

    If log_dir is provided, logs are written to '<log_dir>/run.log' as well
    as stderr, so scheduled CI runs keep a copy next to the report artefacts.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_dir is not None:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(Path(log_dir) / "run.log", encoding="utf-8"))

    logging.basicConfig(level=level, format=DEFAULT_LOG_FORMAT, handlers=handlers, force=True)
    # urllib3 logs every connection at DEBUG/INFO; keep the run log readable.
    logging.getLogger("urllib3").setLevel(logging.WARNING)
