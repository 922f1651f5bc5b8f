from __future__ import annotations

import logging
import os
import platform
import time
from pathlib import Path
from typing import Optional


def default_is_windows() -> bool:
    return platform.system().lower().startswith("windows") or os.name == "nt"


def setup_logging(
    log_type: str,
    name: str,
    log_dir: Optional[str] = "logs",
    *,
    level: int = logging.INFO,
    session_id: Optional[int] = None,
) -> logging.Logger:
    """Sets up a logger for a generation run.

    Messages go to the console and, when `log_dir` is given, are appended to
    `<log_dir>/<log_type>_logs.log`.
    """
    logger = logging.getLogger(f"{log_type}_{name}_logger")
    logger.setLevel(level)

    # Prevent adding multiple handlers if the logger already exists
    if not logger.handlers:
        sid = int(session_id) if session_id is not None else int(time.time())
        formatter = logging.Formatter(
            f"%(asctime)s - %(levelname)s - [Session: {sid}]-[Job: {name}] - %(message)s"
        )

        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

        if log_dir:
            log_dir_path = Path(log_dir)
            log_dir_path.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_dir_path / f"{log_type}_logs.log", mode="a")
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
