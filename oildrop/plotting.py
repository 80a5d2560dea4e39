# oildrop/plotting.py
"""
Generates the drop history report and saves it to a PDF file.

Uses the history collected by the Simulator (`Simulator.get_graph_data()`):
height and velocity traces, the applied field, and the velocity distribution
over the history window.
"""

import matplotlib
matplotlib.use('Agg') # non-interactive backend, no display needed
import matplotlib.pyplot as plt
from matplotlib.backends.backend_pdf import PdfPages
import numpy as np
import os
import datetime
import traceback
from typing import Any, Dict, List, Optional

# --- report styling ---
TITLE_FONTSIZE = 10
LABEL_FONTSIZE = 8
TICK_FONTSIZE = 7
LEGEND_FONTSIZE = 7
LINE_WIDTH = 1.5
GRID_ALPHA = 0.6


def _get_plot_setting(graph_settings: Dict, key: str, default: bool = True) -> bool:
    return graph_settings.get(key, default)


def _get_valid_data(data_dict: Dict, keys: List[str]) -> Optional[Dict[str, np.ndarray]]:
    """
    converts the requested history lists to float arrays, trimmed to a common
    length. returns None if any key is missing or empty.
    """
    if not data_dict: return None
    valid_data = {}
    for k in keys:
        data_list = data_dict.get(k)
        if data_list is None or len(data_list) == 0:
            return None
        valid_data[k] = np.asarray(data_list, dtype=np.float64)
    min_len = min(len(arr) for arr in valid_data.values())
    return {k: arr[:min_len] for k, arr in valid_data.items()}


def _plot_time_series(ax: plt.Axes, time_data: np.ndarray, series_data: Dict[str, np.ndarray],
                      title: str, ylabel: str, reference: Optional[Dict[str, float]] = None):
    """
    plots one or more series against time, with optional horizontal reference lines.
    """
    ax.set_title(title, fontsize=TITLE_FONTSIZE)
    ax.set_xlabel("Time (s)", fontsize=LABEL_FONTSIZE)
    ax.set_ylabel(ylabel, fontsize=LABEL_FONTSIZE)
    has_valid_series = False
    for label, data_arr in series_data.items():
        valid_indices = np.isfinite(data_arr)
        if np.any(valid_indices):
            ax.plot(time_data[valid_indices], data_arr[valid_indices], label=label, lw=LINE_WIDTH)
            has_valid_series = True
    if not has_valid_series:
        ax.text(0.5, 0.5, "No Finite Samples", ha='center', va='center', transform=ax.transAxes)
        ax.grid(False)
        return
    for ref_label, ref_value in (reference or {}).items():
        if ref_value is not None and np.isfinite(ref_value):
            ax.axhline(ref_value, color='gray', linestyle='--', lw=1.0, label=ref_label)
    if len(series_data) > 1 or reference: ax.legend(fontsize=LEGEND_FONTSIZE)
    ax.grid(True, linestyle=':', alpha=GRID_ALPHA)
    ax.tick_params(axis='both', which='major', labelsize=TICK_FONTSIZE)


def _plot_histogram(ax: plt.Axes, data: Optional[np.ndarray], bins: int, title: str, xlabel: str):
    ax.set_title(title, fontsize=TITLE_FONTSIZE)
    if data is None or data.size == 0:
        ax.text(0.5, 0.5, "No Samples", ha='center', va='center', transform=ax.transAxes)
        ax.grid(False); return
    finite_data = data[np.isfinite(data)]
    if finite_data.size == 0:
        ax.text(0.5, 0.5, "Only Non-Finite Samples", ha='center', va='center', transform=ax.transAxes)
        ax.grid(False); return
    ax.set_xlabel(xlabel, fontsize=LABEL_FONTSIZE)
    ax.set_ylabel("Samples", fontsize=LABEL_FONTSIZE)
    ax.hist(finite_data, bins=bins)
    ax.grid(True, linestyle=':', alpha=GRID_ALPHA)
    ax.tick_params(axis='both', which='major', labelsize=TICK_FONTSIZE)


def generate_history_pdf(graph_data: Dict[str, Any], graph_settings: Dict, output_dir: str) -> str:
    """
    Writes the two-page history report. returns the pdf path, or "" on failure.
    """
    if not graph_data: print("Plotting Error: no history to plot."); return ""
    series = _get_valid_data(graph_data, ['time', 'height', 'velocity', 'field'])
    if series is None: print("Plotting Error: History is empty."); return ""

    os.makedirs(output_dir, exist_ok=True)
    timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    pdf_filename = os.path.join(output_dir, f"oildrop_history_{timestamp}.pdf")
    print(f"Generating history PDF: {os.path.normpath(pdf_filename)}")

    t = series['time'] - series['time'][0]
    gap_mm = graph_data.get('plate_gap_mm', 1.0)
    vt = graph_data.get('terminal_velocity')
    bins = graph_settings.get('histogram_bins', 40)

    plot_pages = [
        {
            "title": "Drop Trajectory", "figsize": (10, 4),
            "subplots": [
                {"setting": "plot_height", "func": _plot_time_series,
                 "args": [t, {"Height": series['height'] * gap_mm}, "Height Above Lower Plate", "Height (mm)"],
                 "kwargs": {"reference": {"Upper plate": gap_mm}}},
                {"setting": "plot_velocity", "func": _plot_time_series,
                 "args": [t, {"Velocity": series['velocity'] * 1000.0}, "Vertical Velocity", "Velocity (mm/s)"],
                 "kwargs": {"reference": {"Free-fall terminal": vt * 1000.0 if vt is not None else None}}},
            ]
        },
        {
            "title": f"Field & Velocity Distribution ({graph_data.get('integrator', '-')})", "figsize": (10, 4),
            "subplots": [
                {"setting": "plot_field", "func": _plot_time_series,
                 "args": [t, {"Field": series['field'] / 1000.0}, "Applied Field (along +y)", "Field (kV/m)"]},
                {"setting": "plot_hist_velocity", "func": _plot_histogram,
                 "args": [series['velocity'] * 1000.0, bins, "Velocity Distribution", "Velocity (mm/s)"]},
            ]
        },
    ]

    try:
        with PdfPages(pdf_filename) as pdf:
            for page_layout in plot_pages:
                enabled_defs = [d for d in page_layout["subplots"] if _get_plot_setting(graph_settings, d["setting"])]
                if not enabled_defs: continue

                fig, axes = plt.subplots(1, len(enabled_defs), figsize=page_layout["figsize"])
                fig.suptitle(page_layout["title"], fontsize=14)
                axes = np.atleast_1d(axes).flatten()

                for ax, plot_def in zip(axes, enabled_defs):
                    try:
                        plot_def["func"](ax, *plot_def["args"], **plot_def.get("kwargs", {}))
                    except Exception as e_plot:
                        print(f"ERROR plotting '{plot_def['setting']}': {e_plot}"); traceback.print_exc()
                        ax.cla()
                        ax.text(0.5, 0.5, "Plotting Error", ha='center', va='center', transform=ax.transAxes)

                plt.tight_layout(rect=[0, 0.03, 1, 0.95])
                pdf.savefig(fig)
                plt.close(fig)

        print(f"History report written: {pdf_filename}")
        return pdf_filename

    except Exception as e:
        print(f"ERROR writing history report {pdf_filename}: {e}"); traceback.print_exc()
        if os.path.exists(pdf_filename):
            try: os.remove(pdf_filename)
            except OSError: pass
        return ""
