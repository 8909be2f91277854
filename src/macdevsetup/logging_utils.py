# logging_utils.py
from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import List, Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

_installed: List[logging.Handler] = []


def default_log_path(home: Path) -> Path:
    return home / "Library" / "Logs" / "mac-dev-setup.log"


def configure_logging(
    log_path: Path,
    level: int = logging.INFO,
    also_console: bool = False,
) -> Path:
    """Send every command and step decision to a log file.

    Console output for the user goes through ui.console; the log file is the
    detailed record. If *log_path* can't be opened, a file in the temp
    directory is used instead.

    Calling this again replaces the handlers from the previous call.

    Returns the file path actually in use.
    """
    root = logging.getLogger()
    root.setLevel(level)

    for h in _installed:
        root.removeHandler(h)
        h.close()
    _installed.clear()

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    chosen = Path(log_path)
    file_handler: Optional[logging.Handler] = None
    try:
        chosen.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(chosen, encoding="utf-8")
    except OSError:
        chosen = Path(tempfile.gettempdir()) / "mac-dev-setup.log"
        file_handler = logging.FileHandler(chosen, encoding="utf-8")
    file_handler.setFormatter(fmt)
    _installed.append(file_handler)

    if also_console:
        stream = logging.StreamHandler()
        stream.setFormatter(fmt)
        _installed.append(stream)

    for h in _installed:
        root.addHandler(h)

    logging.getLogger(__name__).info(
        "Logging initialized (requested=%s, actual=%s)", log_path, chosen
    )
    return chosen
