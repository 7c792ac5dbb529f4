"""
CSV export of the count history.
"""

from __future__ import annotations

import csv
import io
from typing import Iterable, TextIO, Tuple

CSV_HEADER = ("time", "people", "vehicles")
CSV_FILENAME = "counts_history.csv"


def write_csv(rows: Iterable[Tuple[str, int, int]], fp: TextIO) -> None:
    writer = csv.writer(fp, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    writer.writerows(rows)


def rows_to_csv(rows: Iterable[Tuple[str, int, int]]) -> str:
    buf = io.StringIO()
    write_csv(rows, buf)
    return buf.getvalue()
