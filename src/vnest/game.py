"""Wiring: build a store, repository, services and session from a Config."""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from typing import Any

from vnest.combinations import CombinationService
from vnest.config import Config
from vnest.kvstore import FileKeyValueStore, KeyValueStore
from vnest.repository import WordRepository
from vnest.scheduler import Scheduler
from vnest.session import ExerciseSession
from vnest.sets import SetCatalog
from vnest.storage import WordStore, open_store

logger = logging.getLogger(__name__)


class Game:
    """Owns every component of one running game.

    Use as a context manager, or call :meth:`close` when done.
    """

    def __init__(
        self,
        config: Config,
        store: WordStore,
        sets: SetCatalog,
        progress: KeyValueStore,
        *,
        scheduler: Scheduler | None = None,
        rng: random.Random | None = None,
        on_no_more_sets: Callable[[], None] | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self.progress = progress
        self.repository = WordRepository(store, data_dir=config.data_dir)
        self.sets = sets
        self.combinations = CombinationService(
            self.repository,
            sets,
            rng=rng,
            fitting_cards=config.fitting_cards,
            unfitting_cards=config.unfitting_cards,
        )
        self.session = ExerciseSession(
            self.combinations,
            sets,
            config=config,
            scheduler=scheduler,
            progress=progress,
            on_no_more_sets=on_no_more_sets,
        )

    @classmethod
    def open(cls, config: Config | None = None, **kwargs: Any) -> Game:
        """Open storage as configured and assemble a game.

        Raises:
            StorageError: If the configured store cannot be opened.
            SeedError: If the set catalogue is missing or malformed.
        """
        config = config if config is not None else Config()
        sets = SetCatalog.load(config.data_dir)
        store = open_store(config)
        if config.progress_path is not None:
            progress: KeyValueStore = FileKeyValueStore(config.progress_path)
        else:
            progress = KeyValueStore()
        logger.debug("Opened game with %s store", store.name)
        return cls(config, store, sets, progress, **kwargs)

    def close(self) -> None:
        self.session.close()
        self.session.scheduler.shutdown()
        self.progress.close()
        self.store.close()

    def __enter__(self) -> Game:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()
