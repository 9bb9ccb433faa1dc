"""
Settings loaded from .env
"""

import pytest

from daovote import constants
from daovote.constants import ConfigString, parse_bool
from daovote.exceptions import ConfigurationError


class TestSettings:

    @pytest.mark.parametrize("raw,expected", [
        ("True", True),
        (" yes ", True),
        ("1", True),
        ("false", False),
        ("OFF", False),
        ("", False),
    ])
    def test_parse_bool(self, raw, expected):
        assert parse_bool("LOG_FILE_OUTPUT", raw) is expected

    def test_parse_bool_rejects_other_words(self):
        with pytest.raises(ConfigurationError, match="LOG_FILE_OUTPUT"):
            parse_bool("LOG_FILE_OUTPUT", "sometimes")

    def test_config_string_keeps_default(self):
        value = ConfigString("%H:%M", "%Y-%m-%dT%H:%M:%S")
        assert value == "%H:%M"
        assert value.default() == "%Y-%m-%dT%H:%M:%S"

    def test_flags_are_bools(self):
        assert isinstance(constants.LOG_CONSOLE_HIGHLIGHTING, bool)
        assert isinstance(constants.LOG_FILE_OUTPUT, bool)

    def test_log_format_default_is_reachable(self):
        assert isinstance(constants.LOG_FORMAT, ConfigString)
        assert "%(message)s" in constants.LOG_FORMAT.default()
