"""Simulator orchestration and the integrator manager."""

import numpy as np
import pytest

from oildrop.integrator_manager import IntegratorManager
from oildrop.simulator import Simulator, STATUS_PAUSED, STATUS_RUNNING


class TestIntegratorManager:

    def test_available(self):
        manager = IntegratorManager()
        ids = {d['id'] for d in manager.get_available_integrators()}
        assert ids == {'explicit_euler', 'exponential_drag'}

    def test_unknown_id(self):
        with pytest.raises(ValueError):
            IntegratorManager().select_integrator('rk4')

    def test_advance_without_integrator(self, drop, params, rng):
        with pytest.raises(RuntimeError):
            IntegratorManager().advance(drop, params, 1e-4, 0.0, rng)

    def test_select_and_advance(self, drop, params, counting_gaussian):
        manager = IntegratorManager()
        manager.select_integrator('exponential_drag')
        assert manager.active_integrator_id == 'exponential_drag'
        assert manager.get_active_integrator_info()['class'] == 'ExponentialDrag'
        manager.advance(drop, params, 1e-4, 0.0, counting_gaussian)
        assert counting_gaussian.calls == 1


class TestSimulatorLifecycle:

    def test_initial_state(self, sim):
        assert sim.is_running()
        assert sim.get_status_message() == STATUS_RUNNING
        assert sim.get_current_integrator_info()['id'] == 'explicit_euler'
        assert sim.drop.position == pytest.approx(0.35 * 5e-3)
        assert sim.drop.charge_multiple == -8
        assert len(sim.history) == 1

    def test_running_frame(self, sim):
        result = sim.update(0.05)
        assert result.substeps in (90, 91)
        assert sim.get_time() == pytest.approx(0.05)
        assert sim.get_substeps_taken() == result.substeps
        assert 0.0 <= sim.drop.position <= sim.params.plate_gap_m
        assert len(sim.trail) == 1

    def test_paused_frame(self, sim):
        sim.toggle_run()
        assert sim.get_status_message() == STATUS_PAUSED
        position = sim.drop.position
        result = sim.update(0.05)
        assert result.substeps == 0
        assert sim.drop.position == position
        assert sim.get_time() == 0.0
        assert sim.get_frame_clock() == pytest.approx(0.05)
        assert len(sim.history) == 2

    def test_garbage_frame(self, sim):
        result = sim.update(float('nan'))
        assert result.substeps == 0
        assert sim.get_time() == 0.0

    def test_parameter_routing(self, sim):
        sim.update(0.05)
        sim.drop.position = 1e-3
        sim.set_parameter('plate_gap_mm', 10.0)
        assert sim.drop.position == pytest.approx(2e-3)
        assert all(p['y'] <= 1e-2 for p in sim.trail.points)
        sim.set_parameter('viscosity_scaled', 2.0)
        assert sim.params.viscosity == pytest.approx(2e-5)
        sim.set_parameter('charge_multiple', 40)
        assert sim.drop.charge_multiple == 25
        with pytest.raises(ValueError):
            sim.set_parameter('gravity', 1.0)

    def test_flags(self, sim):
        sim.update(0.05)
        sim.set_flag('show_trail', False)
        assert len(sim.trail) == 0
        sim.set_flag('field_enabled', False)
        assert sim.get_current_state_for_ui()['field'] == 0.0
        with pytest.raises(ValueError):
            sim.set_flag('use_cooling', True)

    def test_new_drop_reproducible(self, settings):
        a = Simulator(settings, rng=np.random.default_rng(7))
        b = Simulator(settings, rng=np.random.default_rng(7))
        a.new_drop(); b.new_drop()
        assert a.params.to_dict() == b.params.to_dict()
        assert a.drop.charge_multiple == b.drop.charge_multiple
        assert len(a.trail) == 0

    def test_reset_to_initial(self, sim):
        sim.set_voltage_kv(6.0)
        sim.set_radius_microns(1.4)
        sim.pulse_field()
        sim.toggle_run()
        sim.reset_to_initial()
        assert sim.is_running()
        assert sim.params.voltage_kv == 2.0
        assert sim.params.radius_microns == 0.9
        assert sim.params.field_polarity == 1

    def test_zero_velocity_and_nudge(self, sim):
        sim.drop.velocity = 0.01
        sim.zero_velocity()
        assert sim.drop.velocity == 0.0
        sim.nudge_charge(-1)
        assert sim.drop.charge_multiple == -9

    def test_select_integrator(self, sim):
        sim.select_integrator('exponential_drag')
        assert sim.get_current_state_for_ui()['current_integrator'] == 'exponential_drag'
        with pytest.raises(ValueError):
            sim.select_integrator('leapfrog')


class TestReadouts:

    def test_default_readouts(self, sim):
        stats = sim.get_current_state_for_ui()['stats']
        assert stats['field_kv_per_m'] == pytest.approx(-400.0)
        assert stats['charge_e'] == -8
        assert stats['gravity_force_pn'] == pytest.approx(2.622456e-15 * 9.81 * 1e12, rel=1e-5)
        assert stats['electric_force_pn'] == pytest.approx(8 * 1.602e-19 * 4e5 * 1e12, rel=1e-9)
        assert stats['terminal_velocity_mm_s'] == pytest.approx(-9.189662e-02, rel=1e-5)
        assert stats['balance_field_kv_per_m'] == pytest.approx(-20.073573, rel=1e-5)
        assert stats['balance_voltage_kv'] == pytest.approx(0.100368, rel=1e-4)
        assert stats['slip_factor'] == pytest.approx(1.090783, rel=1e-5)

    def test_neutral_drop_has_no_balance(self, sim):
        sim.set_charge_multiple(0)
        stats = sim.get_current_state_for_ui()['stats']
        assert stats['balance_field_kv_per_m'] is None
        assert stats['balance_voltage_kv'] is None

    def test_graph_data(self, sim):
        for _ in range(10):
            sim.update(0.05)
        graph = sim.get_graph_data()
        n = len(graph['time'])
        assert n > 1
        assert len(graph['height']) == len(graph['velocity']) == len(graph['field']) == n
        assert graph['integrator'] == 'explicit_euler'


class TestStartingValues:

    def test_out_of_range_settings_clamped(self, settings):
        settings.update({'plate_gap_mm': 50, 'radius_microns': 5, 'voltage_kv': 40, 'noise_boost': 9,
                         'temperature_k': 1000, 'viscosity_scaled': 0.1, 'charge_multiple': -60})
        sim = Simulator(settings, rng=np.random.default_rng(0))
        values = sim.get_ui_parameter_values()
        assert values['plate_gap_mm'] == pytest.approx(10.0)
        assert values['radius_microns'] == 1.5
        assert values['voltage_kv'] == 8.0
        assert values['noise_boost'] == 2.0
        assert values['temperature_k'] == 330.0
        assert values['viscosity_scaled'] == pytest.approx(1.0)
        assert values['charge_multiple'] == -25
        assert sim.drop.position == pytest.approx(0.35 * 1e-2)
        assert not sim.drop.coefficients_stale(sim.params)

    def test_reset_applies_the_same_ranges(self, settings):
        settings.update({'plate_gap_mm': 1.0, 'temperature_k': 100})
        sim = Simulator(settings, rng=np.random.default_rng(0))
        sim.set_plate_gap(8.0)
        sim.reset_to_initial()
        assert sim.params.plate_gap_m == pytest.approx(2e-3)
        assert sim.params.temperature_k == 260.0


class TestFlagValues:

    @pytest.mark.parametrize("raw, expected", [
        (False, False), (True, True), ('false', False), ('False', False), ('0', False),
        ('true', True), ('1', True), (0, False), (1, True),
    ])
    def test_flag_strings(self, sim, raw, expected):
        sim.set_flag('field_enabled', not expected)
        sim.set_flag('field_enabled', raw)
        assert sim.params.field_enabled is expected

    @pytest.mark.parametrize("raw", ['maybe', 2, None, [True]])
    def test_unrecognized_flag_value(self, sim, raw):
        with pytest.raises(ValueError):
            sim.set_flag('show_grid', raw)
        assert sim.get_current_state_for_ui()['flags']['show_grid'] is True
