"""Export dry-run previews to CSV or JSON."""

import csv
import json

from .display import console
from .models import DryRunReport

_FIELDNAMES = ["uid", "internal_date", "flags"]


def export_previews(report: DryRunReport, format: str, output_path: str) -> None:
    """Export the messages of a dry run to a file.

    Args:
        report: The dry-run report to export.
        format: Output format, either 'csv' or 'json'.
        output_path: Path to write the output file.
    """
    if format not in ("csv", "json"):
        raise ValueError(f"Unsupported export format: {format}")

    rows = [
        {
            "uid": preview.uid,
            "internal_date": preview.internal_date.isoformat(),
            "flags": list(preview.flags),
        }
        for preview in report.previews
    ]

    if format == "csv":
        with open(output_path, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=_FIELDNAMES)
            writer.writeheader()
            for row in rows:
                writer.writerow({**row, "flags": " ".join(row["flags"])})
    else:
        with open(output_path, "w") as f:
            json.dump(rows, f, indent=2)

    console.print(f"Results saved to {output_path}")
