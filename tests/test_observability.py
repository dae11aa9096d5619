"""
Tests for observability — logging setup and secret masking.
"""

import logging

import pytest

from provisioner.core.observability.logging_config import (
    MASK,
    level_from_flags,
    mask_secrets,
    setup_logging,
)


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestSetupLogging:
    @pytest.mark.parametrize(
        "name, level",
        [
            ("DEBUG", logging.DEBUG),
            ("info", logging.INFO),
            ("WARNING", logging.WARNING),
            ("ERROR", logging.ERROR),
            ("nonsense", logging.WARNING),
            ("", logging.WARNING),
        ],
    )
    def test_console_level(self, name, level):
        setup_logging(level=name)
        root = logging.getLogger()
        assert root.level == level
        assert len(root.handlers) == 1
        assert root.handlers[0].level == level

    def test_replaces_handlers(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger().handlers) == 1

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "provisioner.log"
        setup_logging(level="WARNING", log_file=str(log_file), log_file_level="DEBUG")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 2

        logging.getLogger("provisioner.test").debug("written to file only")
        for handler in root.handlers:
            handler.flush()
        assert "written to file only" in log_file.read_text()

    def test_console_format_by_level(self):
        setup_logging(level="ERROR")
        assert logging.getLogger().handlers[0].formatter._fmt == "%(message)s"
        setup_logging(level="DEBUG")
        assert "%(lineno)d" in logging.getLogger().handlers[0].formatter._fmt


class TestLevelFromFlags:
    @pytest.mark.parametrize(
        "flags, expected",
        [
            ({"debug": True, "verbose": True}, "DEBUG"),
            ({"verbose": True, "quiet": True}, "INFO"),
            ({"quiet": True}, "ERROR"),
            ({}, "WARNING"),
        ],
    )
    def test_flags(self, flags, expected):
        assert level_from_flags(environ={}, **flags) == expected

    def test_env_var(self):
        assert level_from_flags(environ={"PROV_LOG_LEVEL": "INFO"}) == "INFO"

    def test_flag_beats_env_var(self):
        assert level_from_flags(quiet=True, environ={"PROV_LOG_LEVEL": "DEBUG"}) == "ERROR"


class TestMaskSecrets:
    def test_masks_every_occurrence(self):
        text = "mysql -p hunter2 && echo hunter2"
        assert mask_secrets(text, ["hunter2"]) == f"mysql -p {MASK} && echo {MASK}"

    def test_several_secrets(self):
        assert mask_secrets("a=one b=two", ["one", "two"]) == f"a={MASK} b={MASK}"

    def test_empty_secret_ignored(self):
        assert mask_secrets("nothing here", ["", None]) == "nothing here"

    def test_no_secrets(self):
        assert mask_secrets("plain", []) == "plain"
