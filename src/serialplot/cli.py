#!/usr/bin/env python3
"""
Command line front end for serialplot.

``serialplot capture`` reads JSON records from a serial port and prints a
one-line summary at every throttled update; ``serialplot replay`` pushes a
captured text file through the same session. Both can export a CSV, the raw
record log, a statistics table, and a PNG chart when the stream ends.

Examples::

    serialplot capture --port /dev/ttyACM0 --baud 115200 --csv run.csv --stats
    serialplot replay capture.txt --plot capture.png
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional, Sequence

import yaml

from .analysis.features import format_statistic
from .config import SerialPlotConfig, load_config
from .core.models import ConnectionStatus, SeriesSnapshot
from .core.session import StreamSession
from .dataio.file_paths import export_path
from .transport import SerialTransport, TextStreamTransport, TransportError

logger = logging.getLogger(__name__)


def decode_delimiter(text: Optional[str]) -> Optional[str]:
    """Turn CLI escapes such as ``\\n`` or ``\\r\\n`` into the real characters."""
    if text is None:
        return None
    # Non-ASCII characters pass through unchanged; only backslash escapes are decoded.
    return text.encode("latin-1", "backslashreplace").decode("unicode_escape")


def format_update(snapshot: Sequence[SeriesSnapshot]) -> str:
    parts: List[str] = []
    total = 0
    for series in snapshot:
        total += len(series.points)
        latest = series.points[-1][1] if series.points else None
        parts.append(f"{series.channel_name}={latest}")
    if not parts:
        return "no channels yet"
    return f"{total} samples | " + " ".join(parts)


def print_statistics(session: StreamSession) -> None:
    rows = session.statistics()
    print(f"{'channel':<20} {'n':>6} {'mean':>12} {'stdev':>12} {'rsd %':>10}")
    for row in rows:
        print(
            f"{row.channel_name:<20} {row.count:>6} "
            f"{format_statistic(row.mean):>12} "
            f"{format_statistic(row.standard_deviation):>12} "
            f"{format_statistic(row.relative_standard_deviation_percent):>10}"
        )


def _write_outputs(session: StreamSession, args: argparse.Namespace, cfg: SerialPlotConfig, name: str) -> None:
    print(f"[INFO] {session.record_count} records, {session.malformed_count} malformed")
    if args.export:
        base = Path(cfg.export_dir).expanduser()
        csv_path = session.export_csv(export_path(name, ".csv", base))
        raw_path = session.export_raw(export_path(name, ".txt", base))
        print(f"[INFO] Exported {csv_path} and {raw_path}")
    if args.csv:
        path = session.export_csv(Path(args.csv).expanduser())
        print(f"[INFO] CSV written to {path}")
    if args.raw:
        path = session.export_raw(Path(args.raw).expanduser())
        print(f"[INFO] Raw log written to {path}")
    if args.stats:
        print_statistics(session)
    if args.plot:
        from .tools.plotter import save_snapshot_png

        path = save_snapshot_png(session.recompute().snapshot, Path(args.plot).expanduser())
        print(f"[INFO] Chart written to {path}")


def _build_session(cfg: SerialPlotConfig, transport, quiet: bool) -> StreamSession:
    def _on_update(snapshot: List[SeriesSnapshot]) -> None:
        if not quiet:
            print(format_update(snapshot), flush=True)

    def _on_new_channel(name: str, index: int) -> None:
        logger.info("New channel #%d: %s", index, name)

    return StreamSession(
        transport,
        config=cfg,
        on_update=_on_update,
        on_new_channel=_on_new_channel,
    )


def run_capture(args: argparse.Namespace, cfg: SerialPlotConfig) -> int:
    if not cfg.port:
        print("A serial port is required (--port or 'port' in the config file).", file=sys.stderr)
        return 2

    session = _build_session(cfg, SerialTransport(), args.quiet)
    try:
        session.connect()
    except TransportError as exc:
        print(f"Failed to open serial port: {exc}", file=sys.stderr)
        return 2

    deadline = None if args.duration is None else time.monotonic() + float(args.duration)
    print("[INFO] Capturing. Press Ctrl+C to stop.")
    try:
        while session.status is ConnectionStatus.CONNECTED:
            if deadline is not None and time.monotonic() >= deadline:
                break
            time.sleep(0.1)
    except KeyboardInterrupt:
        pass
    finally:
        if session.status is ConnectionStatus.CONNECTED:
            session.disconnect()

    _write_outputs(session, args, cfg, Path(cfg.port).name)
    return 0


def run_replay(args: argparse.Namespace, cfg: SerialPlotConfig) -> int:
    path = Path(args.file).expanduser()
    if not path.exists():
        print(f"File not found: {path}", file=sys.stderr)
        return 2

    session = _build_session(cfg, TextStreamTransport(chunk_size=cfg.chunk_size), args.quiet)
    try:
        session.connect(path=str(path))
    except TransportError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    try:
        session.transport.join()
    except KeyboardInterrupt:
        pass
    finally:
        if session.status is ConnectionStatus.CONNECTED:
            session.disconnect()

    _write_outputs(session, args, cfg, path.stem)
    return 0


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", type=str, default=None, help="YAML config file (default: $SERIALPLOT_CONFIG).")
    parser.add_argument(
        "-d",
        "--delimiter",
        type=str,
        default=None,
        help=r"Record delimiter with escapes, e.g. '\n' or ';'. Empty string treats each chunk as a record.",
    )
    parser.add_argument("--interval", type=float, default=None, help="Minimum ms between live updates (default: 250).")
    parser.add_argument("--csv", type=str, default=None, help="Write the CSV export to this path.")
    parser.add_argument("--raw", type=str, default=None, help="Write the raw record log to this path.")
    parser.add_argument("--export", action="store_true", help="Write CSV and raw log with timestamped names under export_dir.")
    parser.add_argument("--stats", action="store_true", help="Print per-channel statistics at the end.")
    parser.add_argument("--plot", type=str, default=None, help="Save a PNG chart of the final data.")
    parser.add_argument("-q", "--quiet", action="store_true", help="Do not print live updates.")
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING).",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="serialplot",
        description="Chart and export JSON telemetry streamed over a serial port.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    capture = sub.add_parser("capture", help="Capture from a serial port.")
    capture.add_argument("-p", "--port", type=str, default=None, help="Serial port (e.g. /dev/ttyACM0, COM3).")
    capture.add_argument("-b", "--baud", type=int, default=None, help="Baud rate (default: 9600).")
    capture.add_argument("--duration", type=float, default=None, help="Stop after this many seconds.")
    _add_common_arguments(capture)

    replay = sub.add_parser("replay", help="Replay a captured text file.")
    replay.add_argument("file", type=str, help="File containing raw serial output.")
    replay.add_argument("--chunk-size", type=int, default=None, help="Characters per simulated read.")
    _add_common_arguments(replay)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        cfg = load_config(args.config)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        parser.error(f"Could not load config: {exc}")

    cfg = cfg.with_overrides(
        delimiter=decode_delimiter(args.delimiter),
        publish_interval_ms=args.interval,
        port=getattr(args, "port", None),
        baud_rate=getattr(args, "baud", None),
        chunk_size=getattr(args, "chunk_size", None),
    )

    if args.command == "capture":
        return run_capture(args, cfg)
    return run_replay(args, cfg)


if __name__ == "__main__":
    raise SystemExit(main())
