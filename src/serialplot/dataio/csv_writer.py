"""CSV writing helpers for exported sessions."""

import csv
from pathlib import Path
from typing import Any, Iterable, Sequence


def write_rows(path: Path, headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> None:
    """
    Write a header row and all data rows to a CSV file.

    Directories are created as needed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as csvfile:
        writer = csv.writer(csvfile, lineterminator="\n")
        writer.writerow(headers)
        writer.writerows(rows)


def write_csv_export(path: Path, rows: Iterable[Sequence[Any]]) -> None:
    """Write rows whose first element is the header (as yielded by ``iter_csv_rows``)."""
    iterator = iter(rows)
    headers = next(iterator, None)
    if headers is None:
        headers = ["sample"]
    write_rows(path, headers, iterator)


def write_raw_log(path: Path, records: Iterable[str]) -> None:
    """Write one raw record per line, exactly as received."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as fh:
        for record in records:
            fh.write(record)
            fh.write("\n")
