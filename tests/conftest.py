from datetime import datetime

import pytest

from presence_control.core.config import Settings
from presence_control.domain.engine import DecisionEngine


# 2024-01-01 is a Monday
MONDAY = datetime(2024, 1, 1, 12, 0, 0)


def make_settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


def make_engine(**overrides) -> DecisionEngine:
    return DecisionEngine.from_settings(make_settings(**overrides))


@pytest.fixture
def settings_factory():
    return make_settings


@pytest.fixture
def engine_factory():
    return make_engine
