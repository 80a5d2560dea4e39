"""Headless smoke run."""

import os
import subprocess
import sys

import pytest

from main import parse_arguments
from oildrop.headless import run_headless

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def test_quiet_run(capsys):
    summary = run_headless(0.2, settings={'field_enabled': False, 'noise_boost': 0.0},
                           seed=0, integrator_id='exponential_drag')
    assert summary['simulated_time'] == pytest.approx(0.2)
    assert summary['frames'] in (12, 13)
    assert summary['integrator'] == 'exponential_drag'
    assert summary['charge_multiple'] == -8
    # drag-exact at rest start: the drop is already at terminal speed
    assert summary['final_velocity_mm_s'] == pytest.approx(-9.189662e-02, rel=1e-4)
    assert summary['final_height_mm'] == pytest.approx(1.75 - 0.2 * 9.189662e-02, rel=1e-4)
    assert "Headless run" in capsys.readouterr().out


def test_seeded_runs_match():
    a = run_headless(0.1, seed=42)
    b = run_headless(0.1, seed=42)
    assert a['final_height_mm'] == b['final_height_mm']
    assert a['final_velocity_mm_s'] == b['final_velocity_mm_s']


def test_argument_parsing():
    args = parse_arguments(['--headless'])
    assert (args.headless, args.seed, args.integrator) == (3.0, None, None)
    args = parse_arguments(['--headless', '1.5', '--seed', '7', '--integrator', 'exponential_drag'])
    assert (args.headless, args.seed, args.integrator) == (1.5, 7, 'exponential_drag')
    args = parse_arguments([])
    assert args.headless is None and args.port == 7847


@pytest.mark.parametrize("argv", [
    ['--headless', '--seed'],
    ['--headless', '-2'],
    ['--headless', '--integrator', 'rk4'],
    ['--seed', 'x'],
])
def test_bad_arguments_exit_with_usage(argv, capsys):
    with pytest.raises(SystemExit) as exc:
        parse_arguments(argv)
    assert exc.value.code == 2
    assert 'usage:' in capsys.readouterr().err


def test_script_runs_from_another_directory(tmp_path):
    env = {k: v for k, v in os.environ.items() if k != 'PYTHONPATH'}
    # run_path does not put the script directory on sys.path, main.py has to
    script = (f"import runpy, sys; sys.argv = ['main.py', '--headless', '0.05', '--seed', '1']; "
              f"runpy.run_path({os.path.join(PROJECT_ROOT, 'main.py')!r}, run_name='__main__')")
    completed = subprocess.run(
        [sys.executable, '-c', script],
        cwd=tmp_path, env=env, capture_output=True, text=True, timeout=300,
    )
    assert completed.returncode == 0, completed.stderr
    assert "Headless run" in completed.stdout
