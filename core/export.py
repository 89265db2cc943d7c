"""
Dataset export for downstream model training.

Flattens stored submissions into one row per pattern: submission metadata,
the points as a JSON string, and one column per feature in
``FEATURE_NAMES`` order. Reads only the submission store, so exports never
contain contributor identities.
"""

import json
from pathlib import Path
from typing import Iterable, Union

import pandas as pd

from core.models import FEATURE_NAMES, SubmissionRecord

EXPORT_FORMATS = ("csv", "jsonl")
META_COLUMNS = ["id", "label", "grid_size", "timestamp_bucket", "created_at", "points"]


def records_to_frame(records: Iterable[SubmissionRecord]) -> pd.DataFrame:
    rows = []
    for record in records:
        row = {
            "id": record.id,
            "label": record.label,
            "grid_size": record.grid_size,
            "timestamp_bucket": record.timestamp_bucket,
            "created_at": record.created_at.isoformat(),
            "points": json.dumps([[p.x, p.y] for p in record.points]),
        }
        row.update(record.features.as_dict())
        rows.append(row)
    return pd.DataFrame(rows, columns=META_COLUMNS + FEATURE_NAMES)


def write_export(
    records: Iterable[SubmissionRecord],
    output: Union[str, Path],
    fmt: str = "csv",
) -> int:
    """
    Write submissions to ``output`` as CSV or JSON Lines.

    Returns:
        Number of rows written
    """
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format '{fmt}'. Use one of: {', '.join(EXPORT_FORMATS)}")

    frame = records_to_frame(records)
    output = Path(output)
    output.parent.mkdir(parents=True, exist_ok=True)
    if fmt == "csv":
        frame.to_csv(output, index=False)
    else:
        frame.to_json(output, orient="records", lines=True)
    return len(frame)
