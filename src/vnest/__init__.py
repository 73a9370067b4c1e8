__version__ = "0.1.0"

from .exceptions import (
    VnestError as VnestError,
    NotFoundError as NotFoundError,
    EmptyCollectionError as EmptyCollectionError,
    StorageError as StorageError,
    SeedError as SeedError,
    ConfigError as ConfigError,
)

from .models import (
    WordType as WordType,
    Feedback as Feedback,
    Phase as Phase,
    AdvanceOutcome as AdvanceOutcome,
    Word as Word,
    Trio as Trio,
    WordBundle as WordBundle,
    WordSet as WordSet,
    ExerciseState as ExerciseState,
)

from .config import Config as Config, load_config as load_config
from .kvstore import KeyValueStore as KeyValueStore, FileKeyValueStore as FileKeyValueStore
from .storage import (
    WordStore as WordStore,
    SqliteWordStore as SqliteWordStore,
    KeyValueWordStore as KeyValueWordStore,
    open_store as open_store,
)
from .repository import WordRepository as WordRepository
from .sets import SetCatalog as SetCatalog
from .combinations import CombinationService as CombinationService
from .scheduler import (
    Scheduler as Scheduler,
    ThreadingScheduler as ThreadingScheduler,
    ManualScheduler as ManualScheduler,
    TimerHandle as TimerHandle,
)
from .session import ExerciseSession as ExerciseSession
from .game import Game as Game

__all__ = [
    # Exceptions
    "VnestError",
    "NotFoundError",
    "EmptyCollectionError",
    "StorageError",
    "SeedError",
    "ConfigError",
    # Enums
    "WordType",
    "Feedback",
    "Phase",
    "AdvanceOutcome",
    # Models
    "Word",
    "Trio",
    "WordBundle",
    "WordSet",
    "ExerciseState",
    # Configuration
    "Config",
    "load_config",
    # Storage
    "KeyValueStore",
    "FileKeyValueStore",
    "WordStore",
    "SqliteWordStore",
    "KeyValueWordStore",
    "open_store",
    # Services
    "WordRepository",
    "SetCatalog",
    "CombinationService",
    # Scheduling
    "Scheduler",
    "ThreadingScheduler",
    "ManualScheduler",
    "TimerHandle",
    # Session
    "ExerciseSession",
    "Game",
]
