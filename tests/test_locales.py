"""
Tests for localized strings and logging setup.
"""
import logging

import pytest

from config import setup_logging
from locales import LOCALES, normalise_language, t, weekday_name


class TestLocales:
    @pytest.mark.parametrize("raw, expected", [("es", "es"), ("ES-es", "es"), ("en_US", "en"), ("fr", "en"), (None, "en")])
    def test_normalise_language(self, raw, expected):
        assert normalise_language(raw) == expected

    def test_every_language_has_the_same_keys(self):
        assert set(LOCALES["es"]) == set(LOCALES["en"])

    def test_lookup_falls_back_to_key(self):
        assert t("es", "no_such_key") == "no_such_key"

    def test_weekday_names_start_on_monday(self):
        assert weekday_name(0, "en") == "Monday"
        assert weekday_name(6, "es") == "Domingo"


class TestSetupLogging:
    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_single_handler_with_level(self):
        setup_logging("debug")
        setup_logging("debug")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_unknown_level_defaults_to_info(self):
        setup_logging("chatty")
        assert logging.getLogger().level == logging.INFO
