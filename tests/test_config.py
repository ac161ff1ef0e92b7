"""
Configuration Tests
===================

Tests for DecoderConfig and the global default configuration.
"""

import logging

import pytest

from shearwater_log import ShearwaterModel
from shearwater_log.config import DecoderConfig, get_default_config, set_default_config


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("SHEARWATER_MODEL", "SHEARWATER_SERIAL", "SHEARWATER_VERBOSE"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestDecoderConfig:
    """Tests for DecoderConfig."""

    def test_defaults(self, clean_env):
        config = DecoderConfig.from_env()
        assert config.model == ShearwaterModel.PETREL
        assert config.serial == 0
        assert config.verbose is False
        assert config.log_level == logging.WARNING

    def test_from_env(self, clean_env):
        clean_env.setenv("SHEARWATER_MODEL", "perdix-ai")
        clean_env.setenv("SHEARWATER_SERIAL", "0x12abcd")
        clean_env.setenv("SHEARWATER_VERBOSE", "yes")
        config = DecoderConfig.from_env()
        assert config.model == ShearwaterModel.PERDIX_AI
        assert config.serial == 0x12ABCD
        assert config.verbose is True
        assert config.log_level == logging.DEBUG

    def test_model_by_number(self, clean_env):
        clean_env.setenv("SHEARWATER_MODEL", "8")
        assert DecoderConfig.from_env().model == ShearwaterModel.TERIC

    def test_invalid_values_ignored(self, clean_env, caplog):
        clean_env.setenv("SHEARWATER_MODEL", "nautilus")
        clean_env.setenv("SHEARWATER_SERIAL", "abc")
        with caplog.at_level(logging.WARNING):
            config = DecoderConfig.from_env()
        assert config.model == ShearwaterModel.PETREL
        assert config.serial == 0
        assert "Invalid SHEARWATER_MODEL" in caplog.text
        assert "Invalid SHEARWATER_SERIAL" in caplog.text


class TestDefaultConfig:
    """Tests for the global configuration instance."""

    def test_set_and_get(self):
        config = DecoderConfig(model=ShearwaterModel.TERN, serial=7)
        set_default_config(config)
        assert get_default_config() is config

    def test_reset_reads_environment(self, clean_env):
        clean_env.setenv("SHEARWATER_MODEL", "teric")
        set_default_config(None)
        assert get_default_config().model == ShearwaterModel.TERIC


class TestModelLookup:
    """Tests for ShearwaterModel.from_name()."""

    @pytest.mark.parametrize("name,model", [
        ("predator", ShearwaterModel.PREDATOR),
        ("PERDIX", ShearwaterModel.PERDIX),
        ("perdix_ai", ShearwaterModel.PERDIX_AI),
        ("Nerd2", ShearwaterModel.NERD2),
        ("12", ShearwaterModel.TERN),
    ])
    def test_from_name(self, name, model):
        assert ShearwaterModel.from_name(name) == model

    @pytest.mark.parametrize("name", ["nautilus", "99", ""])
    def test_unknown(self, name):
        with pytest.raises(ValueError):
            ShearwaterModel.from_name(name)
