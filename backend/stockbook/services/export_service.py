# Overview: Service-layer operations for report export; renders report rows as downloadable files.

from __future__ import annotations

import csv
import io

EXPORT_TYPES = ("csv",)


class ExportError(Exception):
    """Raised when an export request cannot be rendered."""
    pass


def _header(rows: list[dict]) -> list[str]:
    """Union of row keys, first-seen order."""
    header: list[str] = []
    seen = set()
    for row in rows:
        for key in row:
            if key not in seen:
                seen.add(key)
                header.append(key)
    return header


def render_csv(rows) -> str:
    if not isinstance(rows, list) or any(not isinstance(row, dict) for row in rows):
        raise ExportError("data must be a list of objects")

    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=_header(rows), restval="", lineterminator="\n")
    writer.writeheader()
    for row in rows:
        writer.writerow({k: "" if v is None else v for k, v in row.items()})
    return output.getvalue()


def export_report(export_type: str | None, rows) -> tuple[str, str, str]:
    """Return (content, mimetype, filename) for the requested export type."""
    if export_type not in EXPORT_TYPES:
        raise ExportError("Invalid export type")
    return render_csv(rows), "text/csv", "report.csv"
