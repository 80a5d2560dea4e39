"""Shared fixtures: default parameters, drops and a seeded random source."""

import numpy as np
import pytest

from config.default_settings import DEFAULT_SETTINGS
from oildrop.drop_state import DropState, SimulationParameters
from oildrop.simulator import Simulator


@pytest.fixture
def settings():
    return dict(DEFAULT_SETTINGS)


@pytest.fixture
def params(settings):
    return SimulationParameters.from_settings(settings)


@pytest.fixture
def drop(params):
    return DropState.create(params)


@pytest.fixture
def quiet_params(params):
    """noise off and field off: only gravity and drag act."""
    params.noise_boost = 0.0
    params.field_enabled = False
    return params


@pytest.fixture
def rng():
    return np.random.default_rng(20240611)


@pytest.fixture
def sim(settings, rng):
    return Simulator(settings, rng=rng)


class CountingGaussian:
    """stand-in random source returning a fixed sample and counting draws."""

    def __init__(self, value=0.0):
        self.value = value
        self.calls = 0

    def standard_normal(self):
        self.calls += 1
        return self.value


@pytest.fixture
def counting_gaussian():
    return CountingGaussian()
