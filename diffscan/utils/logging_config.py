"""
Logging Configuration
=====================
Console output for local runs, workflow-command output inside GitHub
Actions, and an optional plain log file.
"""
import logging
import sys
from typing import Optional

FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """Level-colored console lines; CI logs are timestamped by the runner."""

    cyan = "\x1b[36m"
    green = "\x1b[32m"
    yellow = "\x1b[33m"
    red = "\x1b[31m"
    bold_red = "\x1b[31;1m"
    reset = "\x1b[0m"

    format_str = "%(levelname)-8s | %(name)s - %(message)s"

    COLORS = {
        logging.DEBUG: cyan,
        logging.INFO: green,
        logging.WARNING: yellow,
        logging.ERROR: red,
        logging.CRITICAL: bold_red,
    }

    def __init__(self, use_color: bool = True) -> None:
        super().__init__(self.format_str)
        self._formatters = {
            levelno: logging.Formatter(color + self.format_str + self.reset if use_color else self.format_str)
            for levelno, color in self.COLORS.items()
        }

    def format(self, record):
        formatter = self._formatters.get(record.levelno)
        if formatter is None:
            return super().format(record)
        return formatter.format(record)


class GithubActionsFormatter(logging.Formatter):
    """
    Emit GitHub Actions workflow commands so the runner highlights problems.

    DEBUG lines only show when the ACTIONS_RUNNER_DEBUG secret is true.
    """

    PREFIXES = {
        logging.DEBUG: "::debug::",
        logging.WARNING: "::warning::",
        logging.ERROR: "::error::",
        logging.CRITICAL: "::error::",
    }

    def __init__(self) -> None:
        super().__init__("%(name)s - %(message)s")

    def format(self, record):
        prefix = self.PREFIXES.get(record.levelno, "")
        # Workflow commands are single-line
        message = super().format(record).replace("\n", "%0A")
        return f"{prefix}{message}"


def setup_logging(
    level=logging.INFO,
    github_actions: bool = False,
    log_file: Optional[str] = None,
):
    """
    Route all diffscan logging through a single root handler set.

    Calling it again replaces the handlers, so repeated runs in one process
    do not duplicate lines.
    """
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
    root_logger.setLevel(level)

    if github_actions:
        # The runner parses workflow commands from stdout
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(GithubActionsFormatter())
    else:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(ColoredFormatter(use_color=sys.stderr.isatty()))
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))

    for logger_name in ("diffscan", "main"):
        package_logger = logging.getLogger(logger_name)
        package_logger.setLevel(level)
        package_logger.propagate = True

    root_logger.debug("Logging initialized (%s).", "GitHub Actions" if github_actions else "console")
