"""Core (UI-agnostic) gym dashboard logic.

This package contains:
- configuration and the dataset registry
- CSV loading (HTTP or local file -> typed rows)
- filter normalization and row aggregation
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
- credential store, login verification and the activity log
"""
