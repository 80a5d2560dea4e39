"""Default settings, slider definitions and the integrator table agree with each other."""

import pytest

from config.available_integrators import AVAILABLE_INTEGRATORS
from config.default_settings import DEFAULT_SETTINGS
from config.param_defs import PARAM_DEFS
from oildrop.utils import dynamic_import
from oildrop.integrators.base import Integrator


def test_defaults_match_slider_defaults():
    for key, pdef in PARAM_DEFS.items():
        assert DEFAULT_SETTINGS[key] == pdef['val'], key


def test_derived_viscosity():
    assert DEFAULT_SETTINGS['viscosity'] == pytest.approx(1.8e-5)


def test_graph_settings_present():
    graph = DEFAULT_SETTINGS['GRAPH_SETTINGS']
    assert graph['history_window_s'] == 20.0
    assert graph['history_sample_interval_s'] == pytest.approx(1.0 / 45.0)


@pytest.mark.parametrize("integrator_def", AVAILABLE_INTEGRATORS, ids=lambda d: d['id'])
def test_integrator_classes_importable(integrator_def):
    cls = dynamic_import(integrator_def['module'], integrator_def['class'])
    assert issubclass(cls, Integrator)


def test_default_integrator_listed():
    assert DEFAULT_SETTINGS['default_integrator'] in {d['id'] for d in AVAILABLE_INTEGRATORS}


def test_dynamic_import_missing_class():
    with pytest.raises(AttributeError):
        dynamic_import('oildrop.integrators.euler', 'Leapfrog')
