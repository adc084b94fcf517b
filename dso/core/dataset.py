"""Dataset import and export.

Import accepts the loose JSON shapes people actually have lying around: a
bare array, or an object wrapping the array (``{"data": [...]}``), whose rows
are strings or objects with some text-ish key.
"""

import json
import os
import tempfile
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from dso.config.constants import ID_FORMAT, SAMPLE_DATASET, TEXT_KEYS
from dso.core.state import ItemStatus, WorkItem
from dso.exceptions import DatasetError
from dso.utils.logging import get_logger

log = get_logger(__name__)


def _extract_rows(parsed: Any) -> list[Any]:
    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict):
        for key, value in parsed.items():
            if isinstance(value, list):
                log.info("Found array in key", key=key)
                return value
        raise DatasetError(
            "Invalid structure: JSON must be an array or contain an array property."
        )
    raise DatasetError("Invalid structure: root element must be an array or object.")


def _extract_text(row: Any) -> str | None:
    if isinstance(row, str):
        return row or None
    if not isinstance(row, dict):
        return None

    for key in TEXT_KEYS:
        value = row.get(key)
        if isinstance(value, str) and value:
            return value

    # Fall back to the first non-empty string value
    for value in row.values():
        if isinstance(value, str) and value:
            return value
    return None


def load_records(raw_json: str) -> list[dict[str, Any]]:
    """Parse dataset JSON into ``{"id": str | None, "original": str}`` records.

    Rows without usable text are skipped with a warning.

    Raises:
        DatasetError: Invalid JSON, wrong root type, or no usable rows
    """
    try:
        parsed = json.loads(raw_json)
    except json.JSONDecodeError as e:
        raise DatasetError(f"JSON syntax error: {e}") from e

    rows = _extract_rows(parsed)
    records: list[dict[str, Any]] = []
    for position, row in enumerate(rows, start=1):
        text = _extract_text(row)
        if text is None:
            continue
        row_id = row.get("id") if isinstance(row, dict) else None
        records.append(
            {
                "id": str(row_id) if row_id not in (None, "") else None,
                "original": text,
                "position": position,
            }
        )

    if not records:
        raise DatasetError(
            "Could not find any text content in the dataset. Ensure your JSON contains "
            "strings or objects with text fields."
        )

    skipped = len(rows) - len(records)
    if skipped:
        log.warning("Skipped rows without text content", skipped=skipped, total=len(rows))

    return records


def load_file(path: Path | str) -> list[dict[str, Any]]:
    """Read and parse a dataset file."""
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise DatasetError(f"Cannot read dataset {path}: {e}") from e
    return load_records(raw)


def build_items(records: Iterable[Mapping[str, Any]]) -> list[WorkItem]:
    """Create Idle work items from ``{id?, original}`` records.

    Missing ids are synthesised from the 1-based row position
    (``ID-00001``, ``ID-00002``, ...).

    Raises:
        DatasetError: Two rows end up with the same id
    """
    items: list[WorkItem] = []
    seen: set[str] = set()
    for index, record in enumerate(records, start=1):
        item_id = str(record.get("id") or ID_FORMAT.format(index=record.get("position", index)))
        if item_id in seen:
            raise DatasetError(f"Duplicate item id: {item_id} (row {record.get('position', index)})")
        seen.add(item_id)
        items.append(
            WorkItem(
                id=item_id,
                original_text=record["original"],
                status=ItemStatus.IDLE,
            )
        )
    return items


def sample_items() -> list[WorkItem]:
    """Built-in sample dataset."""
    return build_items(SAMPLE_DATASET)


def export_items(items: Iterable[WorkItem]) -> list[dict[str, Any]]:
    """Convert items to their JSON export shape."""
    return [item.to_dict() for item in items]


def write_export(items: Iterable[WorkItem], path: Path | str) -> Path:
    """Write items as a JSON array, atomically (temp file + replace)."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(export_items(items), indent=2, ensure_ascii=False)

    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
        os.replace(tmp_name, target)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    log.info("Export written", path=str(target))
    return target
