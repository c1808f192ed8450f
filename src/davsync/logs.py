"""
Logging setup for davsync.

Progress goes to the terminal through click (errors on stderr), and every
record down to DEBUG is kept in a timestamped log file.
"""

import logging
import time
from pathlib import Path
from typing import Optional, Union

import click

LOGGER_NAME = "davsync"
LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
DEFAULT_LOG_DIR = Path.home() / ".davsync" / "logs"


class ClickEchoHandler(logging.Handler):
    """Echo log records with click, sending ERROR and above to stderr."""

    STYLES = {
        logging.WARNING: {"fg": "yellow"},
        logging.ERROR: {"fg": "red"},
        logging.CRITICAL: {"fg": "red", "bold": True},
    }

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            style = self.STYLES.get(record.levelno)
            if style:
                message = click.style(message, **style)
            click.echo(message, err=record.levelno >= logging.ERROR)
        except Exception:
            self.handleError(record)


def log_file_name(now: Optional[float] = None) -> str:
    """Timestamped log file name for a run started at ``now`` (default: current time)."""
    stamp = time.strftime("%Y%m%d-%H%M%S", time.localtime(now))
    return f"davsync-{stamp}.log"


def setup_logging(
    debug: bool = False,
    log_file: Optional[Union[str, Path]] = None,
    log_dir: Optional[Union[str, Path]] = None,
    to_file: bool = True,
) -> Optional[Path]:
    """
    Configure the davsync logger for one run.

    Args:
        debug: Show DEBUG records on the console (INFO otherwise).
        log_file: Explicit log file path; takes precedence over log_dir.
        log_dir: Directory for a timestamped log file (default ~/.davsync/logs).
        to_file: Set to False to skip the log file entirely.

    Returns:
        Path of the log file in use, or None when logging to console only.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.DEBUG)

    console = ClickEchoHandler()
    console.setLevel(logging.DEBUG if debug else logging.INFO)
    console.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console)

    # Suppress urllib3's connection chatter
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    if not to_file:
        return None

    if log_file is not None:
        path = Path(log_file).expanduser()
    else:
        directory = Path(log_dir).expanduser() if log_dir else DEFAULT_LOG_DIR
        path = directory / log_file_name()

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(
            path, encoding="utf-8", errors="backslashreplace"
        )
    except OSError as e:
        logger.warning("Cannot write log file '%s': %s", path, e)
        return None

    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(file_handler)
    return path
