import logging
import os
import sys
from logging.handlers import RotatingFileHandler

LOG_FILE_NAME = "biopush.log"
FILE_FORMAT = "[%(asctime)s] %(levelname)s in %(module)s: %(message)s"
CONSOLE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

ANSI_RESET = "\033[0m"
ANSI_BOLD = "\033[1m"


class ColoredFormatter(logging.Formatter):
    """Console formatter that colors the level name and subsystem tags"""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }

    # Tags at the start of a message, e.g. "[PUSH] Received ATTLOG push ..."
    TAG_COLORS = {
        "[PUSH]": "\033[96m",
        "[CRON]": "\033[34m",
        "[NOTIFY]": "\033[95m",
        "[IDENTITY]": "\033[93m",
        "[STORAGE]": "\033[90m",
    }

    def format(self, record):
        text = super().format(record)

        level_color = self.LEVEL_COLORS.get(record.levelname)
        if level_color:
            text = text.replace(
                record.levelname, f"{level_color}{ANSI_BOLD}{record.levelname}{ANSI_RESET}", 1
            )

        for tag, color in self.TAG_COLORS.items():
            if tag in text:
                text = text.replace(tag, f"{color}{tag}{ANSI_RESET}")

        return text


def get_user_log_dir():
    """Directory for log files: BIOPUSH_LOG_DIR, else a per-user data directory"""
    log_dir = os.getenv("BIOPUSH_LOG_DIR")

    if not log_dir:
        if os.name == "nt":
            base = os.getenv("LOCALAPPDATA") or os.getenv("APPDATA") or os.path.expanduser("~")
            log_dir = os.path.join(base, "BioPush", "logs")
        else:
            log_dir = os.path.join(os.path.expanduser("~"), ".local", "share", "biopush", "logs")

    try:
        os.makedirs(log_dir, exist_ok=True)
    except OSError:
        log_dir = os.getcwd()

    return log_dir


def create_log_handler():
    """Rotating plain-text file handler, shared by app.logger and app_logger"""
    max_bytes = int(os.getenv("LOG_FILE_SIZE", 10 * 1024 * 1024))

    handler = RotatingFileHandler(
        os.path.join(get_user_log_dir(), LOG_FILE_NAME),
        maxBytes=max_bytes,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def create_console_handler():
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ColoredFormatter(CONSOLE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


# Used by services, repositories and background threads that run outside a request
app_logger = logging.getLogger(__name__)

if not app_logger.handlers:
    app_logger.addHandler(create_log_handler())
    app_logger.addHandler(create_console_handler())

app_logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())
app_logger.propagate = False
