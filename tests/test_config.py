"""Tests for the settings validation."""

import pytest
from pydantic import ValidationError

from app.core.config import Settings


class TestWeekdaySettings:
    def test_defaults_are_sunday(self):
        config = Settings()
        assert config.WEEK_START_WEEKDAY == 6
        assert config.CLEANUP_WEEKDAY_NUMBER == 6

    def test_names_are_case_insensitive(self):
        config = Settings(WEEK_START_DAY=" Monday ", CLEANUP_WEEKDAY="FRIDAY")
        assert config.WEEK_START_DAY == "monday"
        assert config.WEEK_START_WEEKDAY == 0
        assert config.CLEANUP_WEEKDAY_NUMBER == 4

    @pytest.mark.parametrize("field", ["WEEK_START_DAY", "CLEANUP_WEEKDAY"])
    def test_typo_fails_at_startup(self, field):
        with pytest.raises(ValidationError) as exc_info:
            Settings(**{field: "sundy"})
        assert "Unknown weekday 'sundy'" in str(exc_info.value)
