# main.py
# ==================================================
#      <<< OIL-DROP SERVER >>>
# ==================================================
"""
main.py is the application entry point for the oil-drop simulation server.

It takes input from the frontend and delegates to the simulator:

1.  Global State: one `Simulator` instance shared by all requests, guarded by
    a `threading.Lock` (sim_lock) so commands and frame advances are applied
    atomically between frames.
2.  Flask & SocketIO Server: HTTP API requests ('/api/...') and WebSocket
    events ('connect', 'send_command', 'advance_frame', 'request_state').
    Frames are driven by the client: every animation frame it reports the
    elapsed time and receives the new state. There is no worker thread.
3.  Backend Helpers: JSON serialization (`_to_serializable`), the initial
    configuration (`get_initial_config`) and state snapshots
    (`get_simulation_state`).
4.  Command Handling: `handle_command` applies UI commands (run/pause, new
    drop, reset, field pulse, parameter/flag changes, integrator selection).
5.  PDF Generation: '/api/generate_pdf' writes the history report.
6.  Headless mode: `python main.py --headless [seconds] [--seed N] [--integrator ID]` runs the
    physics smoke run instead of the server.
"""
import argparse
import traceback
import threading
import numpy as np
import sys
import os

# --- Project Setup ---
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# --- History report (headless matplotlib)
import matplotlib
matplotlib.use('Agg')
from oildrop.plotting import generate_history_pdf

# --- Simulation Core Components ---
from oildrop.simulator import Simulator, SIM_VERSION
from oildrop.headless import run_headless

# --- Configuration ---
from config.param_defs import PARAM_DEFS
from config.default_settings import DEFAULT_SETTINGS
from config.available_integrators import AVAILABLE_INTEGRATORS

# --- Server Components ---
from flask import Flask, send_from_directory, request, jsonify
from flask_socketio import SocketIO, emit

# --- Output Directory ---
OUTPUT_DIR = os.path.join(PROJECT_ROOT, DEFAULT_SETTINGS['GRAPH_SETTINGS'].get('output_dir', 'output'))

# ===========================================
# --- Global State & Server Setup ---
# ===========================================
sim: Simulator | None = None
sim_lock = threading.Lock()

app = Flask(__name__, static_folder=None)
app.config['SECRET_KEY'] = os.environ.get('OILDROP_SECRET_KEY') or os.urandom(24)
socketio = SocketIO(app, cors_allowed_origins="*", async_mode='threading')

# ==================================
# --- Backend Helper Functions ---
# ==================================

def _to_serializable(data):
    """Recursively converts NumPy types to JSON-serializable Python types."""
    if isinstance(data, (np.integer,)): return int(data)
    if isinstance(data, (np.floating,)):
        value = float(data)
        return value if np.isfinite(value) else None
    if isinstance(data, float) and not np.isfinite(data): return None
    if isinstance(data, np.ndarray): return _to_serializable(data.tolist()) if data.size > 0 else []
    if isinstance(data, dict): return {k: _to_serializable(v) for k, v in data.items()}
    if isinstance(data, (list, tuple)): return [_to_serializable(item) for item in data]
    if isinstance(data, (str, int, float, bool, type(None))): return data
    try: return str(data)
    except Exception: return f"<unserializable:{type(data).__name__}>"


def get_initial_config():
    """JSON-safe configuration the frontend builds its controls from."""
    return _to_serializable({
        "PARAM_DEFS": PARAM_DEFS,
        "DEFAULT_SETTINGS": DEFAULT_SETTINGS,
        "AVAILABLE_INTEGRATORS": AVAILABLE_INTEGRATORS,
        "SIM_VERSION": SIM_VERSION
    })


def get_simulation_state():
    """JSON-safe snapshot of the drop, parameters and readouts."""
    default_state = {
        "time": 0.0, "substeps_taken": 0, "status_msg": "Simulation not initialized",
        "running": False, "drop": {}, "params": {}, "stats": {}, "trail": [],
        "current_integrator": "-",
    }
    if not sim: return default_state
    with sim_lock:
        try: return _to_serializable(sim.get_current_state_for_ui())
        except Exception as e:
            print(f"ERROR building state snapshot: {e}"); traceback.print_exc()
            error_state = default_state.copy()
            try: error_state["status_msg"] = sim.get_status_message() or "Error State"
            except Exception: error_state["status_msg"] = "Error State"
            return error_state


def _frame_dt_from(payload):
    """frame duration from a {"dt": ...} object or a bare number. None for any other payload."""
    if isinstance(payload, dict): return payload.get('dt', 0.0)
    if isinstance(payload, (int, float, str)) and not isinstance(payload, bool): return payload
    return None


def advance_simulation_frame(frame_dt):
    """Advances the shared simulator by one client frame. returns a response dict."""
    if not sim: return {"success": False, "message": "Simulation not initialized"}
    with sim_lock:
        result = sim.update(frame_dt)
    return {"success": True, "substeps": result.substeps, "field": result.field,
            "simulated_time": result.simulated_time}


def handle_command(command_data):
    """Handles commands from the frontend (HTTP or WebSocket)."""
    command = command_data.get('command') if isinstance(command_data, dict) else None
    if not sim:
        return {"success": False, "message": "Simulation not initialized"}

    response = {"success": True, "message": f"{command}: ok"}
    needs_state_update = False

    try:
        with sim_lock:
            if command == 'toggle_run':
                sim.toggle_run()
                response["isRunning"] = sim.is_running()
                needs_state_update = True

            elif command == 'new_drop':
                sim.new_drop()
                response["message"] = "New randomized drop."
                needs_state_update = True

            elif command == 'reset':
                sim.reset_to_initial()
                response["message"] = "Simulation reset to defaults."
                response["isRunning"] = sim.is_running()
                needs_state_update = True

            elif command == 'reset_drop':
                sim.reset_drop()
                response["message"] = "Drop reset."
                needs_state_update = True

            elif command == 'pulse':
                sim.pulse_field()
                response["message"] = "Field polarity pulsed."

            elif command == 'zero_velocity':
                sim.zero_velocity()
                response["message"] = "Velocity zeroed."
                needs_state_update = True

            elif command == 'nudge_charge':
                delta = command_data.get('delta', -1)
                try:
                    sim.nudge_charge(1 if int(delta) > 0 else -1)
                    response["message"] = f"Charge now {sim.drop.charge_multiple}e."
                    needs_state_update = True
                except (TypeError, ValueError) as e: response = {"success": False, "message": f"Failed: {e}"}

            elif command == 'set_param':
                key, value = command_data.get('key'), command_data.get('value')
                if key and value is not None:
                    try: sim.set_parameter(key, value); response["message"] = f"Param '{key}' set."
                    except ValueError as e: response = {"success": False, "message": f"Failed: {e}"}
                else: response = {"success": False, "message": f"{command} needs key and value."}

            elif command == 'set_flag':
                key, value = command_data.get('key'), command_data.get('value')
                if key and value is not None:
                    try: sim.set_flag(key, value); response["message"] = f"Flag '{key}' set."
                    except ValueError as e: response = {"success": False, "message": f"Failed: {e}"}
                else: response = {"success": False, "message": f"{command} needs key and value."}

            elif command == 'select_integrator':
                i_id = command_data.get('id')
                if i_id:
                    try: sim.select_integrator(i_id); response["message"] = "Integrator set."; needs_state_update = True
                    except ValueError as e: response = {"success": False, "message": str(e)}
                else: response = {"success": False, "message": "select_integrator needs an id."}

            else: response = {"success": False, "message": f"Unknown command {command!r}"}

    except Exception as e:
        print(f"ERROR handling command '{command}': {e}"); traceback.print_exc()
        response = {"success": False, "message": f"Command {command} failed: {e}"}

    response["_needs_immediate_update"] = needs_state_update
    return response

# ============================================
# --- Flask Routes & SocketIO Handlers ---
# ============================================

@app.route('/api/config')
def route_config_http():
    """slider definitions, defaults and the integrator list."""
    return jsonify(get_initial_config())

@app.route('/api/state')
def route_state_http():
    """current drop state (same payload as the state_update event)."""
    return jsonify(get_simulation_state())

@app.route('/api/command', methods=['POST'])
def route_command_http():
    """applies one UI command; body is {"command": ..., ...}."""
    data = request.get_json(silent=True)
    if not data: return jsonify({"success": False, "message": "Expected a JSON command body."}), 400
    response_dict = handle_command(data)
    response_dict.pop("_needs_immediate_update", None)
    return jsonify(response_dict)

@app.route('/api/frame', methods=['POST'])
def route_frame_http():
    """HTTP endpoint to advance one frame ({"dt": seconds}) and get the new state."""
    frame_dt = _frame_dt_from(request.get_json(silent=True))
    if frame_dt is None:
        return jsonify({"success": False, "message": "Expected {\"dt\": seconds} or a number."}), 400
    response_dict = advance_simulation_frame(frame_dt)
    if not response_dict["success"]: return jsonify(response_dict), 400
    response_dict["state"] = get_simulation_state()
    return jsonify(_to_serializable(response_dict))

@app.route('/api/generate_pdf', methods=['POST'])
def route_generate_pdf():
    """HTTP endpoint to trigger the history PDF."""
    print("Received request to generate history PDF...")
    if not sim: return jsonify({"success": False, "message": "Simulation not initialized"}), 400
    try:
        with sim_lock:
            graph_data = sim.get_graph_data()
        graph_settings = graph_data.get('graph_settings', {})
        if not graph_data.get('time'): return jsonify({"success": False, "message": "No graph data."}), 400
        pdf_filepath = generate_history_pdf(graph_data, graph_settings, OUTPUT_DIR)
        if pdf_filepath:
            pdf_url = f"output/{os.path.basename(pdf_filepath)}"
            return jsonify({"success": True, "message": "History report written.", "filepath": pdf_url})
        else: return jsonify({"success": False, "message": "History report could not be written."}), 500
    except Exception as e:
        print(f"ERROR writing history report: {e}"); traceback.print_exc()
        return jsonify({"success": False, "message": f"Report error: {e}"}), 500

@app.route('/output/<path:filename>')
def route_output_files(filename):
    """Serves generated PDFs."""
    return send_from_directory(OUTPUT_DIR, filename)

# --- SocketIO Handlers ---
@socketio.on('connect')
def handle_connect():
    """new client: send the configuration and a first state snapshot."""
    sid = request.sid
    print(f'Socket client connected: {sid}')
    try:
        emit('config', get_initial_config())
        emit('state_update', get_simulation_state())
    except Exception as e: print(f"Error sending config/state to {sid}: {e}")

@socketio.on('disconnect')
def handle_disconnect():
    print(f'Socket client disconnected: {request.sid}')

@socketio.on('send_command')
def handle_command_ws(command_data):
    """same commands as /api/command; changed state is broadcast to every client."""
    sid = request.sid
    print(f'Command from socket {sid}: {command_data}')
    response_dict = handle_command(command_data)
    needs_update = response_dict.pop("_needs_immediate_update", False)
    emit('command_response', response_dict, room=sid)
    if needs_update:
        socketio.emit('state_update', get_simulation_state())

@socketio.on('advance_frame')
def handle_advance_frame(frame_data):
    """client animation frame: integrates the elapsed time and replies with the state."""
    sid = request.sid
    frame_dt = _frame_dt_from(frame_data)
    if frame_dt is None:
        emit('command_response', {"success": False, "message": "Expected {\"dt\": seconds} or a number."}, room=sid); return
    response_dict = advance_simulation_frame(frame_dt)
    if not response_dict["success"]:
        emit('command_response', response_dict, room=sid); return
    emit('state_update', get_simulation_state(), room=sid)

@socketio.on('request_state')
def handle_request_state():
    """sends the current state to the requesting client only."""
    emit('state_update', get_simulation_state(), room=request.sid)


# ==================================
# --- Main Execution Logic ---
# ==================================

def main_backend_setup(settings=None):
    """Initializes the shared Simulator. returns False if it could not be created."""
    global sim
    print("Creating the oil-drop simulator...")
    try:
        initial_sim_settings = DEFAULT_SETTINGS.copy()
        initial_sim_settings.update(settings or {})
        sim = Simulator(initial_settings=initial_sim_settings)
        print(f"Simulation instance created (v{SIM_VERSION}).")
        return True
    except Exception as e:
        print(f"\n!!! FATAL ERROR creating the simulator: {e} !!!")
        traceback.print_exc()
        sim = None
        print("Simulator could not be created.")
        return False


def parse_arguments(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(description='Millikan oil-drop simulator')
    parser.add_argument('--headless', type=float, nargs='?', const=3.0, default=None, metavar='SECONDS',
                        help='Run the physics without the server for SECONDS of simulated time (default: 3.0)')
    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed for the noise source (default: fresh entropy)')
    parser.add_argument('--integrator', choices=[d['id'] for d in AVAILABLE_INTEGRATORS], default=None,
                        help='Integrator for the headless run (default: from DEFAULT_SETTINGS)')
    parser.add_argument('--port', type=int, default=7847,
                        help='Server port (default: 7847)')
    args = parser.parse_args(argv)
    if args.headless is not None and not args.headless > 0:
        parser.error('--headless needs a positive duration')
    return args


# --- Application Entry Point ---
if __name__ == "__main__":
    args = parse_arguments()
    if args.headless is not None:
        run_headless(args.headless, seed=args.seed, integrator_id=args.integrator)
        sys.exit(0)

    if main_backend_setup():
        os.makedirs(OUTPUT_DIR, exist_ok=True)
        print("\n--- Starting Server ---")
        print(f"   - Server running at: http://localhost:{args.port}/  Press Ctrl+C to stop.")
        try:
            socketio.run(app, host='0.0.0.0', port=args.port, debug=False, use_reloader=False, allow_unsafe_werkzeug=True)
        except KeyboardInterrupt:
            print("\nCtrl+C received, shutting down.")
    else:
        print("\nSimulator setup failed, server not started.")
        sys.exit(1)
