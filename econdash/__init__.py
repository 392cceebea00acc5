"""Core (UI-agnostic) dashboard logic.

This package contains:
- series loading (data provider JSON -> labels/values)
- timeline union and alignment onto a master timeline
- range slicing per sampling frequency
- the dashboard orchestrator and its presentation sink
- chart helpers (Altair -> Vega-Lite spec dict)
"""
