"""Sub-step kernels and the two integrators."""

import numpy as np
import pytest

from oildrop.constants import SUBSTEP_DT
from oildrop.drop_state import DropState
from oildrop.forces import compute_electric_field, terminal_velocity, balance_voltage_kv
from oildrop.integrators.base import Integrator
from oildrop.integrators.euler import ExplicitEuler
from oildrop.integrators.exponential import ExponentialDrag
from oildrop.integrators.kernels import dynamic_speed_cap, reflect_at_plates, euler_substep, exponential_substep

INTEGRATORS = [ExplicitEuler, ExponentialDrag]


def _relaxation_time(drop):
    return drop.mass / drop.drag_coeff


class TestKernels:

    def test_speed_cap_floor(self):
        assert dynamic_speed_cap(0.0, 1e-10) == pytest.approx(0.03)
        assert dynamic_speed_cap(1e-12, 0.0) == pytest.approx(0.03)

    def test_speed_cap_tracks_terminal_speed(self):
        # |vt| = 0.1 m/s -> cap 0.2 m/s
        assert dynamic_speed_cap(-1e-11, 1e-10) == pytest.approx(0.2)

    def test_reflect_lower_plate(self):
        y, v = reflect_at_plates(-1e-6, -0.01, 5e-3)
        assert y == 0.0
        assert v == pytest.approx(0.003)

    def test_reflect_upper_plate(self):
        y, v = reflect_at_plates(5e-3 + 1e-6, 0.01, 5e-3)
        assert y == 5e-3
        assert v == pytest.approx(-0.003)

    def test_inside_gap_untouched(self):
        assert reflect_at_plates(2e-3, 0.01, 5e-3) == (2e-3, 0.01)

    def test_euler_bounce_exact(self):
        # no drag, no force: v stays -0.02 until the plate reverses it
        y, v = euler_substep(1e-6, -0.02, 1.0, 0.0, 0.0, 0.0, 5e-3, 1e-3)
        assert y == 0.0
        assert v == pytest.approx(0.006)

    def test_euler_velocity_clamped(self):
        y, v = euler_substep(2e-3, 0.5, 1.0, 0.0, 0.0, 0.0, 5e-3, 1e-4)
        assert v == pytest.approx(0.03)
        assert y == pytest.approx(2e-3 + 0.03 * 1e-4)

    def test_exponential_reaches_terminal_velocity(self):
        mass, drag, force = 2.6e-15, 2.8e-10, -2.6e-14
        y, v = exponential_substep(2e-3, 0.0, mass, drag, force, 0.0, 5e-3, 1e-3)
        assert v == pytest.approx(force / drag, rel=1e-9)


class TestIntegratorContract:

    def test_base_is_abstract(self):
        with pytest.raises(TypeError):
            Integrator()

    @pytest.mark.parametrize("integrator_cls", INTEGRATORS)
    def test_one_gaussian_draw_per_step(self, integrator_cls, params, drop, counting_gaussian):
        integrator = integrator_cls()
        for _ in range(25):
            integrator.step(drop, params, SUBSTEP_DT, compute_electric_field(params), counting_gaussian)
        assert counting_gaussian.calls == 25

    @pytest.mark.parametrize("integrator_cls", INTEGRATORS)
    def test_stale_coefficients_refreshed_before_step(self, integrator_cls, params, drop, counting_gaussian):
        params.radius_microns = 1.5
        integrator_cls().step(drop, params, SUBSTEP_DT, 0.0, counting_gaussian)
        assert drop.radius_m == pytest.approx(1.5e-6)

    @pytest.mark.parametrize("integrator_cls", INTEGRATORS)
    def test_position_stays_between_plates(self, integrator_cls, params, rng):
        """random starts and kicks near both plates, noise amplified."""
        params.noise_boost = 2.0
        integrator = integrator_cls()
        gap = params.plate_gap_m
        for y0 in (0.0, 1e-7, gap * 0.5, gap - 1e-7, gap):
            for v0 in rng.uniform(-1.0, 1.0, size=20):
                drop = DropState.create(params, charge_multiple=int(rng.integers(-25, 26)))
                drop.position, drop.velocity = y0, v0
                for _ in range(5):
                    integrator.step(drop, params, SUBSTEP_DT, compute_electric_field(params), rng)
                    assert 0.0 <= drop.position <= gap

    def test_explicit_euler_speed_cap_at_display_substep(self, quiet_params, counting_gaussian):
        """dt is ~59 relaxation times here; the cap keeps Euler bounded."""
        drop = DropState.create(quiet_params, charge_multiple=0)
        integrator = ExplicitEuler()
        for _ in range(200):
            integrator.step(drop, quiet_params, SUBSTEP_DT, 0.0, counting_gaussian)
            assert abs(drop.velocity) <= 0.03 + 1e-12
            assert 0.0 <= drop.position <= quiet_params.plate_gap_m


class TestDeterministicMotion:

    @pytest.mark.parametrize("integrator_cls", INTEGRATORS)
    def test_gravity_only_fall(self, integrator_cls, quiet_params, counting_gaussian):
        quiet_params.radius_microns = 1.5
        drop = DropState.create(quiet_params, charge_multiple=0)
        drop.position = 2.5e-3
        dt = _relaxation_time(drop) / 10.0
        vt = terminal_velocity(drop, quiet_params)
        cap = dynamic_speed_cap(-drop.mass * quiet_params.gravity, drop.drag_coeff)

        integrator = integrator_cls()
        positions = [drop.position]
        for _ in range(2000):
            integrator.step(drop, quiet_params, dt, 0.0, counting_gaussian)
            positions.append(drop.position)
            assert abs(drop.velocity) <= cap

        assert np.all(np.diff(positions) <= 0.0)
        assert vt == pytest.approx(-2.467702e-04, rel=1e-5)
        assert drop.velocity == pytest.approx(vt, rel=1e-6)

    @pytest.mark.parametrize("integrator_cls", INTEGRATORS)
    def test_converges_to_field_terminal_velocity(self, integrator_cls, params, counting_gaussian):
        params.noise_boost = 0.0
        params.voltage_kv = 0.5
        drop = DropState.create(params)
        drop.position = 2.5e-3
        field = compute_electric_field(params)
        dt = _relaxation_time(drop) / 10.0

        integrator = integrator_cls()
        for _ in range(1000):
            integrator.step(drop, params, dt, field, counting_gaussian)

        expected = terminal_velocity(drop, params, field)
        assert expected > 0  # field wins over gravity at 0.5 kV for a -8e drop
        assert drop.velocity == pytest.approx(expected, rel=1e-6)

    @pytest.mark.parametrize("integrator_cls", INTEGRATORS)
    def test_balance_point_holds_still(self, integrator_cls, params, counting_gaussian):
        params.noise_boost = 0.0
        drop = DropState.create(params)
        params.voltage_kv = balance_voltage_kv(drop, params)
        drop.position = 2.5e-3
        drop.velocity = 1e-4
        field = compute_electric_field(params)
        dt = _relaxation_time(drop) / 10.0

        integrator = integrator_cls()
        for _ in range(1000):
            integrator.step(drop, params, dt, field, counting_gaussian)

        assert abs(drop.velocity) < 1e-12
        # the initial velocity decays within a few relaxation times
        assert abs(drop.position - 2.5e-3) < 2e-9
