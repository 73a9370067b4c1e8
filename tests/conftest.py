"""Shared test fixtures for vnest."""

import json
import random

import pytest

from vnest import (
    CombinationService,
    ExerciseSession,
    KeyValueStore,
    KeyValueWordStore,
    ManualScheduler,
    SetCatalog,
    SqliteWordStore,
    WordRepository,
)

SMALL_AGENTS = [
    {"id": 1, "value": "Äiti", "type": "Agent"},
    {"id": 2, "value": "Lapsi", "type": "Agent"},
    {"id": 3, "value": "Kokki", "type": "Agent"},
]
SMALL_VERBS = [
    {"id": 1, "value": "Syö", "type": "Verb"},
    {"id": 2, "value": "Juo", "type": "Verb"},
    {"id": 3, "value": "Hyppää", "type": "Verb"},
    {"id": 4, "value": "Nukkuu", "type": "Verb"},
]
SMALL_PATIENTS = [
    {"id": 1, "value": "omenaa", "type": "Patient"},
    {"id": 2, "value": "maitoa", "type": "Patient"},
    {"id": 3, "value": "pastaa", "type": "Patient"},
]
SMALL_TRIOS = [
    {"id": 1, "agentId": 1, "verbId": 1, "patientId": 1, "isFitting": True},
    {"id": 2, "agentId": 2, "verbId": 1, "patientId": 2, "isFitting": False},
    {"id": 3, "agentId": 3, "verbId": 1, "patientId": 2, "isFitting": False},
    {"id": 4, "agentId": 2, "verbId": 2, "patientId": 2, "isFitting": True},
    {"id": 5, "agentId": 1, "verbId": 2, "patientId": 3, "isFitting": False},
    # verb 3 has no fitting combination, verb 4 has none at all
    {"id": 6, "agentId": 3, "verbId": 3, "patientId": 1, "isFitting": False},
]
SMALL_SETS = """
sets:
  - id: 1
    name: Set 1
    level: 1
    verbs: [1]
  - id: 2
    name: Set 2
    level: 2
    verbs: [2]
  - id: 3
    name: Set 3
    level: 3
    verbs: [3, 4]
"""


def write_data_dir(path, agents=SMALL_AGENTS, verbs=SMALL_VERBS,
                   patients=SMALL_PATIENTS, trios=SMALL_TRIOS, sets=SMALL_SETS):
    """Write a word data directory and return its path."""
    path.mkdir(parents=True, exist_ok=True)
    for name, data in (
        ("agents.json", agents),
        ("verbs.json", verbs),
        ("patients.json", patients),
        ("avp_trios.json", trios),
    ):
        (path / name).write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
    (path / "sets.yaml").write_text(sets, encoding="utf-8")
    return path


@pytest.fixture
def small_data_dir(tmp_path):
    """Directory with a tiny dataset built around the verb Syö."""
    return write_data_dir(tmp_path / "data")


@pytest.fixture
def store():
    """In-memory sqlite word store."""
    with SqliteWordStore(":memory:") as s:
        yield s


@pytest.fixture(params=["sqlite", "keyvalue"])
def any_store(request):
    """Each word store implementation in turn."""
    if request.param == "sqlite":
        s = SqliteWordStore(":memory:")
    else:
        s = KeyValueWordStore(KeyValueStore())
    yield s
    s.close()


@pytest.fixture
def repository(store):
    """Repository over the bundled word data."""
    repo = WordRepository(store)
    repo.seed_if_needed()
    return repo


@pytest.fixture
def sets():
    return SetCatalog.load()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def combinations(repository, sets, rng):
    return CombinationService(repository, sets, rng=rng)


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def progress():
    return KeyValueStore()


@pytest.fixture
def session(combinations, sets, scheduler, progress):
    """Started session over the bundled data, driven by a manual clock."""
    s = ExerciseSession(combinations, sets, scheduler=scheduler, progress=progress)
    s.start()
    yield s
    s.close()


@pytest.fixture
def small_session(small_data_dir, store, scheduler, rng):
    """Started session over the tiny dataset."""
    repo = WordRepository(store, data_dir=small_data_dir)
    sets = SetCatalog.load(small_data_dir)
    s = ExerciseSession(
        CombinationService(repo, sets, rng=rng), sets, scheduler=scheduler,
    )
    s.start()
    yield s
    s.close()
