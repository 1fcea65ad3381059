from __future__ import annotations

import csv
import io
from typing import Any, Iterable, Mapping, Sequence


def write_csv(fieldnames: Sequence[str], rows: Iterable[Mapping[str, Any]]) -> bytes:
    """CSV bytes with a UTF-8 BOM so spreadsheet apps pick the right encoding."""

    out = io.StringIO()
    writer = csv.DictWriter(out, fieldnames=list(fieldnames), extrasaction="ignore")
    writer.writeheader()
    for row in rows:
        writer.writerow({k: ("N/A" if v is None or v == "" else v) for k, v in row.items()})
    return out.getvalue().encode("utf-8-sig")
