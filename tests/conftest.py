"""
Shearwater Log Test Configuration
=================================

Shared fixtures for the decoder test suite. Buffers are assembled with
the builders in dive_builders.py.
"""

import pytest

from shearwater_log.config import DecoderConfig, set_default_config

from dive_builders import LegacyDiveBuilder, PnfDiveBuilder, legacy_dive, pnf_dive


@pytest.fixture(autouse=True)
def default_config():
    """Isolate every test from SHEARWATER_* variables in the environment."""
    set_default_config(DecoderConfig())
    yield
    set_default_config(None)


@pytest.fixture
def pnf_data() -> bytes:
    """PNF open-circuit dive, three air samples, log version 10."""
    return pnf_dive()


@pytest.fixture
def legacy_data() -> bytes:
    """Legacy Petrel open-circuit dive, three air samples, log version 6."""
    return legacy_dive()


@pytest.fixture
def pnf_builder() -> PnfDiveBuilder:
    return PnfDiveBuilder()


@pytest.fixture
def legacy_builder() -> LegacyDiveBuilder:
    return LegacyDiveBuilder()
