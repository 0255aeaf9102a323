import logging

from diffscan.utils.logging_config import ColoredFormatter, GithubActionsFormatter, setup_logging


def _record(level, msg):
    return logging.LogRecord("diffscan.test", level, __file__, 1, msg, None, None)


def test_github_actions_prefixes():
    formatter = GithubActionsFormatter()
    assert formatter.format(_record(logging.WARNING, "careful")) == "::warning::diffscan.test - careful"
    assert formatter.format(_record(logging.ERROR, "broken")).startswith("::error::")
    assert formatter.format(_record(logging.INFO, "plain")) == "diffscan.test - plain"


def test_github_actions_single_line():
    line = GithubActionsFormatter().format(_record(logging.ERROR, "first\nsecond"))
    assert "\n" not in line
    assert "first%0Asecond" in line


def test_colored_formatter_without_color():
    line = ColoredFormatter(use_color=False).format(_record(logging.INFO, "hello"))
    assert "\x1b[" not in line
    assert line.endswith("diffscan.test - hello")


def test_setup_logging_replaces_handlers(tmp_path):
    log_file = tmp_path / "run.log"
    setup_logging(logging.DEBUG, log_file=str(log_file))
    setup_logging(logging.DEBUG, log_file=str(log_file))
    root = logging.getLogger()
    assert len(root.handlers) == 2
    assert logging.getLogger("httpx").level == logging.WARNING

    logging.getLogger("diffscan.test").info("persisted")
    for handler in root.handlers:
        handler.flush()
    assert "persisted" in log_file.read_text()

    for handler in list(root.handlers):
        handler.close()
        root.removeHandler(handler)
