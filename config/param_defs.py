# config/param_defs.py
"""
UI Parameter Definitions (sliders and number boxes) for the frontend.
The min/max of each entry are also the clamp range applied by the
configuration setters in oildrop.controls.
"""

PARAM_DEFS = {
      # --- Apparatus ---
      'voltage_kv':       {'label':'Plate Voltage (kV)', 'min':0.0, 'max':8.0,  'step':0.1,  'val':2.0,  'fmt':"{:.1f}", 'live':True},
      'plate_gap_mm':     {'label':'Plate Gap (mm)',     'min':2.0, 'max':10.0, 'step':0.1,  'val':5.0,  'fmt':"{:.1f}", 'live':True},

      # --- Drop ---
      'radius_microns':   {'label':'Drop Radius (µm)',   'min':0.3, 'max':1.5,  'step':0.01, 'val':0.9,  'fmt':"{:.2f}", 'live':True},
      'charge_multiple':  {'label':'Charge (× e)',       'min':-25, 'max':25,   'step':1,    'val':-8,   'fmt':"{:d}",   'live':True},

      # --- Air ---
      'viscosity_scaled': {'label':'Air Viscosity (×1e-5 Pa·s)', 'min':1.0, 'max':3.0, 'step':0.01, 'val':1.8, 'fmt':"{:.2f}", 'live':True},
      'temperature_k':    {'label':'Temperature (K)',    'min':260.0, 'max':330.0, 'step':1.0, 'val':295.0, 'fmt':"{:.0f}", 'live':True},
      'noise_boost':      {'label':'Brownian Noise ×',   'min':0.0, 'max':2.0,  'step':0.01, 'val':1.0,  'fmt':"{:.2f}", 'live':True},
}

# --- VALIDATION ---
for _key, _pdef in PARAM_DEFS.items():
    if not _pdef['min'] <= _pdef['val'] <= _pdef['max']:
        raise ValueError(f"PARAM_DEFS['{_key}'] default {_pdef['val']} outside [{_pdef['min']}, {_pdef['max']}]")
