"""Runtime configuration for serial capture sessions."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional

import yaml

CONFIG_ENV_VAR = "SERIALPLOT_CONFIG"


@dataclass(slots=True)
class SerialPlotConfig:
    """
    Tuning knobs for how records are framed, captured, and published.

    The defaults match a typical Arduino sketch printing one JSON object per
    line at 9600 baud, with the chart refreshed four times a second.
    """

    delimiter: str = "\n"
    publish_interval_ms: float = 250.0

    port: Optional[str] = None
    baud_rate: int = 9600
    read_timeout_s: float = 0.1
    encoding: str = "utf-8"
    chunk_size: int = 256

    export_dir: str = "exports"

    def sanitized(self) -> SerialPlotConfig:
        """Return a copy with derived limits applied."""
        port = self.port
        if port is not None:
            port = str(port).strip() or None
        return SerialPlotConfig(
            delimiter="" if self.delimiter is None else str(self.delimiter),
            publish_interval_ms=max(0.0, float(self.publish_interval_ms)),
            port=port,
            baud_rate=max(1, int(self.baud_rate)),
            read_timeout_s=max(0.0, float(self.read_timeout_s)),
            encoding=str(self.encoding or "utf-8"),
            chunk_size=max(1, int(self.chunk_size)),
            export_dir=str(self.export_dir or "exports"),
        )

    def with_overrides(self, **overrides: Any) -> SerialPlotConfig:
        """Apply non-``None`` overrides (e.g. from CLI flags)."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes).sanitized()

    def transport_options(self) -> dict:
        return {
            "port": self.port,
            "baud_rate": self.baud_rate,
            "timeout": self.read_timeout_s,
            "encoding": self.encoding,
            "read_size": self.chunk_size,
        }


def _recognized_fields() -> set[str]:
    """Return the dataclass field names accepted by :class:`SerialPlotConfig`."""
    return {f.name for f in fields(SerialPlotConfig)}


def _normalize_mapping(data: Mapping[str, Any]) -> MutableMapping[str, Any]:
    """Flatten known nesting patterns (e.g. top-level ``serial`` key)."""
    merged: MutableMapping[str, Any] = {}
    for key, value in data.items():
        if key in {"serial", "session"} and isinstance(value, Mapping):
            merged.update(value)
        else:
            merged[key] = value
    if "baud" in merged and "baud_rate" not in merged:
        merged["baud_rate"] = merged["baud"]
    return merged


def config_from_mapping(data: Mapping[str, Any] | None) -> SerialPlotConfig:
    """Build :class:`SerialPlotConfig` from ``data`` (ignoring unknown keys)."""
    if not data:
        return SerialPlotConfig()
    normalized = _normalize_mapping(data)
    known = _recognized_fields()
    payload = {key: normalized[key] for key in normalized.keys() & known}
    return SerialPlotConfig(**payload).sanitized()


def load_config(path: str | Path | None = None) -> SerialPlotConfig:
    """
    Load configuration from ``path`` (or ``$SERIALPLOT_CONFIG``).

    Missing files fall back to default :class:`SerialPlotConfig`.
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR) or None
    if path is None:
        return SerialPlotConfig()
    cfg_path = Path(path).expanduser()
    if not cfg_path.exists():
        return SerialPlotConfig()
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    if not isinstance(raw, Mapping):
        raise ValueError(f"Expected mapping in {cfg_path}, got {type(raw).__name__}")
    return config_from_mapping(raw)


def save_config(path: str | Path, cfg: SerialPlotConfig) -> None:
    """Write ``cfg`` as a ``serial:`` block that :func:`load_config` reads back."""
    cfg_path = Path(path).expanduser()
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    data = {"serial": {f.name: getattr(cfg, f.name) for f in fields(SerialPlotConfig)}}
    with cfg_path.open("w", encoding="utf-8") as fh:
        yaml.safe_dump(data, fh, default_flow_style=False, sort_keys=False)


__all__ = ["SerialPlotConfig", "config_from_mapping", "load_config", "save_config", "CONFIG_ENV_VAR"]
