"""Miscellaneous tools: the Matplotlib snapshot plotter and opt-in debug timing."""
