"""Numeric analysis helpers for channel data.

:mod:`features` works on plain iterables or NumPy arrays and stays free of
I/O so the recompute engine, the CLI, and tests can share it.
"""
