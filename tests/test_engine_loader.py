"""
tests/test_engine_loader.py — ENGINE_FACTORY resolution and settings checks
"""

import collections

import pytest

from wa_gateway.core import config
from wa_gateway.core.exceptions import EngineNotConfiguredError
from wa_gateway.engine.loader import load_engine_factory


def test_loads_callable_from_dotted_path():
    assert load_engine_factory("collections:OrderedDict") is collections.OrderedDict


def test_nested_attribute_path():
    assert load_engine_factory("os:path.join") is __import__("os").path.join


@pytest.mark.parametrize("path", [None, "", "no_colon", "missing_module_xyz:factory", "math:nope", "math:pi"])
def test_bad_paths_raise(path):
    with pytest.raises(EngineNotConfiguredError):
        load_engine_factory(path)


def test_validate_settings_rejects_malformed_factory(monkeypatch):
    monkeypatch.setattr(config.settings, "ENGINE_FACTORY", "not-a-path")
    with pytest.raises(ValueError):
        config.validate_settings()


def test_validate_settings_requires_engine_in_production(monkeypatch):
    monkeypatch.setattr(config.settings, "ENVIRONMENT", "production")
    monkeypatch.setattr(config.settings, "ENGINE_FACTORY", None)
    with pytest.raises(ValueError, match="ENGINE_FACTORY"):
        config.validate_settings()


def test_default_settings_are_valid():
    assert config.validate_settings() is True
    assert config.settings.CLEANUP_MAX_RETRIES == 5
    assert config.settings.CLEANUP_RETRY_DELAY_SECONDS == 2.0
    assert config.settings.BACKEND_BASE_URL == "http://localhost/sorin/api"
