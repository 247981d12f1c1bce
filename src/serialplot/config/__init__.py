"""Configuration objects and helpers for serialplot.

Settings live in an optional YAML file (``serial:`` block) and are loaded
into the typed :class:`SerialPlotConfig` dataclass (see :mod:`runtime`), which
the CLI and sessions use for framing, publish rate, and port parameters.
"""

from .runtime import SerialPlotConfig, config_from_mapping, load_config, save_config

__all__ = ["SerialPlotConfig", "config_from_mapping", "load_config", "save_config"]
