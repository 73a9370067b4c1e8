"""Word set (level) catalogue loaded from YAML."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from vnest.exceptions import SeedError
from vnest.models import WordSet
from vnest.seed import data_dir_for

logger = logging.getLogger(__name__)

SETS_FILE = "sets.yaml"


class SetCatalog:
    """Ordered collection of word sets, keyed by set id."""

    def __init__(self, sets: list[WordSet]) -> None:
        self._sets = {s.id: s for s in sorted(sets, key=lambda s: s.id)}
        if len(self._sets) != len(sets):
            raise SeedError("Duplicate set id in set catalogue")

    @classmethod
    def load(cls, data_dir: str | Path | None = None) -> SetCatalog:
        """Load ``sets.yaml`` from ``data_dir`` (bundled data by default)."""
        path = data_dir_for(data_dir) / SETS_FILE
        if not path.exists():
            raise SeedError(f"Set catalogue not found: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            mark = getattr(e, "problem_mark", None)
            where = f" (line {mark.line + 1})" if mark else ""
            raise SeedError(f"Invalid YAML in {path}{where}: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Any) -> SetCatalog:
        if not isinstance(data, dict) or not isinstance(data.get("sets"), list):
            raise SeedError("Set catalogue must be a mapping with a 'sets' list")
        return cls([_parse_set(item, i) for i, item in enumerate(data["sets"])])

    def __len__(self) -> int:
        return len(self._sets)

    def __contains__(self, set_id: object) -> bool:
        return set_id in self._sets

    def ids(self) -> list[int]:
        return list(self._sets)

    def get(self, set_id: int) -> WordSet | None:
        return self._sets.get(set_id)

    @property
    def max_set_id(self) -> int:
        return max(self._sets) if self._sets else 0

    def first_verb_id(self, set_id: int) -> int | None:
        word_set = self._sets.get(set_id)
        if word_set is None or not word_set.verb_ids:
            return None
        return word_set.verb_ids[0]

    def set_for_verb(self, verb_id: int) -> WordSet | None:
        for word_set in self._sets.values():
            if verb_id in word_set.verb_ids:
                return word_set
        return None


def _parse_set(item: Any, index: int) -> WordSet:
    where = f"sets[{index}]"
    if not isinstance(item, dict):
        raise SeedError(f"{where}: expected a mapping")
    set_id = item.get("id")
    if not isinstance(set_id, int) or isinstance(set_id, bool) or set_id < 1:
        raise SeedError(f"{where}: 'id' must be a positive integer")
    verbs = item.get("verbs", [])
    if not isinstance(verbs, list) or not all(
        isinstance(v, int) and not isinstance(v, bool) for v in verbs
    ):
        raise SeedError(f"{where}: 'verbs' must be a list of verb ids")
    if not verbs:
        logger.warning("Set %d has no verbs", set_id)
    return WordSet(
        id=set_id,
        name=str(item.get("name", f"Set {set_id}")),
        level=int(item.get("level", set_id)),
        verb_ids=tuple(verbs),
    )
