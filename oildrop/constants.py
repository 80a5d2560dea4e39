# oildrop/constants.py
"""
Physical and numerical constants used in the simulation (SI units).
"""
import numpy as np

# --- Fundamental Constants ---
ELECTRON_CHARGE     = 1.602e-19     # elementary charge (C)
BOLTZMANN           = 1.380649e-23  # boltzmann constant (J/K)
STANDARD_GRAVITY    = 9.81          # m/s^2
CONST_pi            = np.pi

# --- Fluid / Drop Properties ---
OIL_DENSITY         = 860.0         # kg/m^3
AIR_DENSITY         = 1.2           # kg/m^3
AIR_MEAN_FREE_PATH  = 65e-9         # m
MIN_EFFECTIVE_DENSITY = 1.0         # kg/m^3, keeps buoyancy from zeroing the mass
MIN_DROP_MASS       = 1e-20         # kg
MIN_SLIP_RADIUS     = 5e-9          # m, radius floor for the knudsen number

# --- Cunningham Slip Correction ---
CUNNINGHAM_A = 1.257
CUNNINGHAM_B = 0.4
CUNNINGHAM_C = 1.1

# --- Integrator Constants ---
MAX_FRAME_DT        = 1.0 / 20.0    # s, longest frame the driver will integrate
SUBSTEP_DT          = 1.0 / 1800.0  # s
BASE_MAX_SPEED      = 0.12          # m/s
SPEED_CAP_FLOOR_FRACTION = 0.25     # cap never drops below this fraction of BASE_MAX_SPEED
MIN_DYNAMIC_CAP     = 0.02          # m/s
BOUNCE_DAMPING      = 0.3
NOISE_SCALE         = 0.6           # empirical thermal noise scale
MIN_NOISE_DT        = 1e-6          # s, denominator floor in the noise std
MIN_FIELD_GAP       = 1e-5          # m, denominator floor in the field
SUBSTEP_RESIDUE_FRACTION = 1e-9    # frame remainders below this fraction of a sub-step are float residue

# --- Drop Defaults ---
DEFAULT_CHARGE_MULTIPLE = -8
INITIAL_HEIGHT_FRACTION = 0.35      # fraction of the gap above the lower plate
PULSE_DURATION      = 0.8           # s
