"""Loading and checking the bundled word data."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from vnest.exceptions import SeedError
from vnest.models import TRIO_COLLECTION, WORD_COLLECTIONS, WordType
from vnest.storage import Row

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path(__file__).parent / "data"

# Collection -> bundled file name
DATA_FILES: dict[str, str] = {
    "agents": "agents.json",
    "verbs": "verbs.json",
    "patients": "patients.json",
    TRIO_COLLECTION: "avp_trios.json",
}

# Keys in the bundled trio files -> storage column names
_TRIO_KEYS = {
    "id": "id",
    "agentId": "agent_id",
    "verbId": "verb_id",
    "patientId": "patient_id",
    "isFitting": "is_fitting",
}


def data_dir_for(data_dir: str | Path | None) -> Path:
    return Path(data_dir) if data_dir is not None else DEFAULT_DATA_DIR


def load_seed_data(data_dir: str | Path | None = None) -> dict[str, list[Row]]:
    """Load all four collections from ``data_dir`` as storage rows.

    Raises:
        SeedError: If a file is missing, unreadable or malformed.
    """
    base = data_dir_for(data_dir)
    rows: dict[str, list[Row]] = {}
    for word_type, collection in WORD_COLLECTIONS.items():
        raw = _load_json(base / DATA_FILES[collection])
        rows[collection] = [_word_row(item, word_type, i) for i, item in enumerate(raw)]
    raw = _load_json(base / DATA_FILES[TRIO_COLLECTION])
    rows[TRIO_COLLECTION] = [_trio_row(item, i) for i, item in enumerate(raw)]

    for collection, items in rows.items():
        _check_unique_ids(collection, items)
    _warn_dangling(rows)
    logger.debug(
        "Loaded seed data from %s: %s",
        base, {c: len(items) for c, items in rows.items()},
    )
    return rows


def _load_json(path: Path) -> list[Any]:
    if not path.exists():
        raise SeedError(f"Seed file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise SeedError(f"Invalid JSON in {path} (line {e.lineno}): {e.msg}") from e
    except OSError as e:
        raise SeedError(f"Cannot read seed file {path}: {e}") from e
    if not isinstance(data, list):
        raise SeedError(f"{path.name}: root must be a list")
    return data


def _require(item: Any, key: str, kind: type, where: str) -> Any:
    if not isinstance(item, dict):
        raise SeedError(f"{where}: expected a mapping, got {type(item).__name__}")
    if key not in item:
        raise SeedError(f"{where}: missing required field {key!r}")
    value = item[key]
    # bool is an int subclass; keep the two apart
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise SeedError(f"{where}: field {key!r} must be {kind.__name__}")
    return value


def _word_row(item: Any, word_type: WordType, index: int) -> Row:
    where = f"{word_type.collection}[{index}]"
    row = {
        "id": _require(item, "id", int, where),
        "value": _require(item, "value", str, where),
        "type": word_type.value,
    }
    declared = item.get("type", word_type.value)
    if declared != word_type.value:
        raise SeedError(f"{where}: type {declared!r} does not match {word_type.value!r}")
    if not row["value"].strip():
        raise SeedError(f"{where}: empty value")
    return row


def _trio_row(item: Any, index: int) -> Row:
    where = f"{TRIO_COLLECTION}[{index}]"
    row: Row = {}
    for key, column in _TRIO_KEYS.items():
        kind = bool if key == "isFitting" else int
        row[column] = _require(item, key, kind, where)
    return row


def _check_unique_ids(collection: str, items: list[Row]) -> None:
    seen: set[int] = set()
    for item in items:
        if item["id"] in seen:
            raise SeedError(f"{collection}: duplicate id {item['id']}")
        seen.add(item["id"])


def _warn_dangling(rows: dict[str, list[Row]]) -> None:
    ids = {c: {r["id"] for r in rows[c]} for c in WORD_COLLECTIONS.values()}
    for trio in rows[TRIO_COLLECTION]:
        for column, collection in (
            ("agent_id", "agents"), ("verb_id", "verbs"), ("patient_id", "patients"),
        ):
            if trio[column] not in ids[collection]:
                logger.warning(
                    "Trio %d references unknown %s id %d",
                    trio["id"], collection, trio[column],
                )
