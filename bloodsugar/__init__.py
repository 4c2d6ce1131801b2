"""Core (UI-agnostic) blood sugar dashboard logic.

This package contains:
- CSV loading (Google Sheets export or local file -> text)
- delimited text parsing into validated raw records
- reading normalization and summary statistics
- chart helpers (Altair -> Vega-Lite spec dict)
"""
