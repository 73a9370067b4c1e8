"""ExerciseSession: the game state machine driven by player actions."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

from vnest.combinations import CombinationService
from vnest.config import Config
from vnest.exceptions import StorageError
from vnest.kvstore import KeyValueStore
from vnest.models import (
    AdvanceOutcome,
    ExerciseState,
    Feedback,
    Phase,
    Word,
    WordBundle,
    WordType,
)
from vnest.scheduler import Scheduler, ThreadingScheduler, TimerHandle
from vnest.sets import SetCatalog

logger = logging.getLogger(__name__)

CURRENT_SET_KEY = "@currentSet"

NO_WORD_DATA = "No word data available"

Listener = Callable[[ExerciseState], None]


class ExerciseSession:
    """One player's run through the sets.

    All actions are serialized by a single lock. Delayed transitions
    (validating a completed pick, moving to the congratulations screen)
    run through ``scheduler`` and are tied to the session generation:
    any regeneration or :meth:`close` makes earlier timers inert.

    Actions never raise; failures show up as ``Phase.ERROR`` with a
    message in ``state.error``.
    """

    def __init__(
        self,
        combinations: CombinationService,
        sets: SetCatalog,
        *,
        config: Config | None = None,
        scheduler: Scheduler | None = None,
        progress: KeyValueStore | None = None,
        on_no_more_sets: Callable[[], None] | None = None,
    ) -> None:
        self.combinations = combinations
        self.sets = sets
        self.config = config if config is not None else Config()
        self.scheduler = scheduler if scheduler is not None else ThreadingScheduler()
        self.progress = progress if progress is not None else KeyValueStore()
        self.on_no_more_sets = on_no_more_sets

        self._lock = threading.RLock()
        self._listeners: list[Listener] = []
        self._generation = 0
        self._timers: list[TimerHandle] = []
        self._validation: TimerHandle | None = None

        self._phase = Phase.LOADING
        self._set_id = 1
        self._verb: Word | None = None
        self._subjects: tuple[Word, ...] = ()
        self._objects: tuple[Word, ...] = ()
        self._selected_subject: Word | None = None
        self._selected_object: Word | None = None
        self._feedback = Feedback.NONE
        self._correct_answers = 0
        self._error: str | None = None

    def __enter__(self) -> ExerciseSession:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # State and listeners
    # ------------------------------------------------------------------

    @property
    def state(self) -> ExerciseState:
        with self._lock:
            return ExerciseState(
                phase=self._phase,
                set_id=self._set_id,
                verb=self._verb,
                subjects=self._subjects,
                objects=self._objects,
                selected_subject=self._selected_subject,
                selected_object=self._selected_object,
                feedback=self._feedback,
                correct_answers=self._correct_answers,
                error=self._error,
            )

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def max_set_id(self) -> int:
        if len(self.sets):
            return min(self.config.max_sets, self.sets.max_set_id)
        return self.config.max_sets

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with a fresh snapshot after every change."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        with self._lock:
            snapshot = self.state
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Session listener failed")

    def _set_phase(self, phase: Phase) -> None:
        logger.debug("Session phase %s -> %s", self._phase.value, phase.value)
        self._phase = phase

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> ExerciseState:
        """Seed word data if needed, restore progress and build an exercise."""
        with self._lock:
            if self._phase is Phase.CLOSED:
                return self.state
            self._supersede()
            self._set_phase(Phase.LOADING)
            self._error = None
            self._notify()

            repository = self.combinations.repository
            if not repository.seed_if_needed() or repository.is_empty():
                self._fail(NO_WORD_DATA)
                return self.state

            self._set_id = self._restore_set_id()
            self._correct_answers = 0
            bundle = self.combinations.random_bundle_for_set(self._set_id)
            if bundle is None and self._set_id != 1:
                logger.warning(
                    "Stored set %d has no playable words, starting from set 1",
                    self._set_id,
                )
                self._set_id = 1
                self._persist_set_id()
                bundle = self.combinations.random_bundle_for_set(self._set_id)
            self._load_exercise(bundle)
            return self.state

    def retry(self) -> ExerciseState:
        """Run initialization again after a failure."""
        with self._lock:
            if self._phase not in (Phase.ERROR, Phase.LOADING):
                logger.debug("Ignoring retry in phase %s", self._phase.value)
                return self.state
        return self.start()

    def close(self) -> None:
        """Tear the session down. Pending timers become inert."""
        with self._lock:
            if self._phase is Phase.CLOSED:
                return
            self._supersede()
            self._set_phase(Phase.CLOSED)
            self._notify()
            self._listeners.clear()

    def _supersede(self) -> None:
        """Invalidate every pending timer of the current generation."""
        self._generation += 1
        for handle in self._timers:
            handle.cancel()
        self._timers.clear()
        self._validation = None

    def _schedule(self, delay: float, action: Callable[[], None]) -> TimerHandle:
        generation = self._generation

        def guarded() -> None:
            with self._lock:
                if generation != self._generation or self._phase is Phase.CLOSED:
                    logger.debug("Dropping stale timer from generation %d", generation)
                    return
                action()

        handle = self.scheduler.call_later(delay, guarded)
        self._timers = [h for h in self._timers if h.pending]
        self._timers.append(handle)
        return handle

    # ------------------------------------------------------------------
    # Exercise generation
    # ------------------------------------------------------------------

    def _load_exercise(self, bundle: WordBundle | None) -> None:
        self._supersede()
        self._selected_subject = None
        self._selected_object = None
        self._feedback = Feedback.NONE
        if bundle is None:
            self._verb = None
            self._subjects = ()
            self._objects = ()
            self._fail(f"No playable words for set {self._set_id}")
            return
        self._verb = bundle.verb
        self._subjects = bundle.agents
        self._objects = bundle.patients
        self._error = None
        self._set_phase(Phase.PLAYING)
        logger.debug("New exercise in set %d: verb %s", self._set_id, bundle.verb.value)
        self._notify()

    def _fail(self, message: str) -> None:
        logger.warning("Exercise session error: %s", message)
        self._error = message
        self._set_phase(Phase.ERROR)
        self._notify()

    def generate_new_exercise(self) -> ExerciseState:
        """Replace the current exercise with a random one from the same set."""
        with self._lock:
            if self._phase is Phase.CLOSED:
                return self.state
            self._next_exercise()
            return self.state

    # ------------------------------------------------------------------
    # Player actions
    # ------------------------------------------------------------------

    def select(self, word: Word) -> ExerciseState:
        """Record a subject or object pick based on the card's type tag."""
        with self._lock:
            if self._phase is not Phase.PLAYING:
                logger.debug("Ignoring selection in phase %s", self._phase.value)
                return self.state
            if word.type is WordType.AGENT:
                self._selected_subject = word
            elif word.type is WordType.PATIENT:
                self._selected_object = word
            else:
                logger.error("Unknown word type for selection: %r", word)
                return self.state
            self._notify()

            if self._selected_subject is not None and self._selected_object is not None:
                if self._validation is not None:
                    self._validation.cancel()
                self._validation = self._schedule(
                    self.config.validate_delay, self._validate,
                )
            return self.state

    def _validate(self) -> None:
        if self._phase is not Phase.PLAYING:
            return
        subject, patient, verb = self._selected_subject, self._selected_object, self._verb
        if subject is None or patient is None or verb is None:
            return
        self._validation = None
        self._set_phase(Phase.VALIDATING)
        self._notify()

        correct = self.combinations.is_correct(subject.id, verb.id, patient.id)
        self._feedback = Feedback.CORRECT if correct else Feedback.INCORRECT
        logger.debug(
            "Checked %s %s %s: %s", subject.value, verb.value, patient.value, correct,
        )
        if correct:
            self._correct_answers += 1
        self._set_phase(Phase.FEEDBACK)
        self._notify()

        if correct and self._correct_answers >= self.config.correct_threshold:
            self._schedule(self.config.congrats_delay, self._auto_congrats)

    def _auto_congrats(self) -> None:
        if self._phase is Phase.FEEDBACK:
            self._show_congrats()

    def _show_congrats(self) -> None:
        self._supersede()
        self._correct_answers = 0
        self._set_phase(Phase.CONGRATS)
        logger.info("Set %d completed", self._set_id)
        self._notify()

    def next(self) -> ExerciseState:
        """Continue after feedback: congratulate or load a new exercise."""
        with self._lock:
            if self._phase is not Phase.FEEDBACK:
                logger.debug("Ignoring next in phase %s", self._phase.value)
                return self.state
            self._next_exercise()
            return self.state

    def _next_exercise(self) -> None:
        """Load another exercise, unless the set was just completed."""
        if self._correct_answers >= self.config.correct_threshold:
            self._show_congrats()
        else:
            self._load_exercise(self.combinations.random_bundle_for_set(self._set_id))

    def reset(self) -> ExerciseState:
        """Try again with a new exercise from the same set."""
        with self._lock:
            if self._phase not in (Phase.FEEDBACK, Phase.PLAYING):
                logger.debug("Ignoring reset in phase %s", self._phase.value)
                return self.state
            self._next_exercise()
            return self.state

    def replay(self) -> ExerciseState:
        """Play the completed set again from its first verb."""
        with self._lock:
            if self._phase not in (Phase.CONGRATS, Phase.PROGRESS):
                logger.debug("Ignoring replay in phase %s", self._phase.value)
                return self.state
            self._correct_answers = 0
            bundle = self.combinations.bundle_for_set_start(self._set_id)
            if bundle is None:
                bundle = self.combinations.random_bundle_for_set(self._set_id)
            self._load_exercise(bundle)
            return self.state

    def advance_set(self) -> AdvanceOutcome:
        """Move on to the next set, if there is one."""
        with self._lock:
            if self._phase is not Phase.CONGRATS:
                logger.debug("Ignoring advance_set in phase %s", self._phase.value)
                return AdvanceOutcome.IGNORED
            if self._set_id >= self.max_set_id:
                self._supersede()
                self._set_phase(Phase.PROGRESS)
                self._notify()
                callback = self.on_no_more_sets
            else:
                self._set_id += 1
                self._persist_set_id()
                self._correct_answers = 0
                self._load_exercise(self.combinations.random_bundle_for_set(self._set_id))
                return AdvanceOutcome.NEXT_SET
        if callback is not None:
            callback()
        return AdvanceOutcome.NO_MORE_SETS

    def set_current_set(self, set_id: int) -> bool:
        """Jump to a set chosen by the player. Returns False if unknown."""
        with self._lock:
            if self._phase is Phase.CLOSED:
                return False
            if set_id not in self.sets or set_id > self.max_set_id:
                logger.warning("Unknown set: %r", set_id)
                return False
            self._set_id = set_id
            self._persist_set_id()
            self._correct_answers = 0
            self._load_exercise(self.combinations.random_bundle_for_set(set_id))
            return True

    def reset_progress(self) -> ExerciseState:
        """Clear the counter, picks and feedback, keeping the current cards."""
        with self._lock:
            if self._phase is Phase.CLOSED:
                return self.state
            self._supersede()
            self._correct_answers = 0
            self._selected_subject = None
            self._selected_object = None
            self._feedback = Feedback.NONE
            if self._verb is not None:
                self._set_phase(Phase.PLAYING)
            self._notify()
            return self.state

    # ------------------------------------------------------------------
    # Persisted progress
    # ------------------------------------------------------------------

    def _restore_set_id(self) -> int:
        try:
            raw = self.progress.get(CURRENT_SET_KEY)
        except StorageError as e:
            logger.warning("Reading current set failed: %s", e)
            raw = None
        if raw is None:
            self._set_id = 1
            self._persist_set_id()
            return 1
        try:
            set_id = int(raw)
        except ValueError:
            logger.warning("Ignoring invalid stored set id %r", raw)
            return 1
        if set_id < 1 or set_id > self.max_set_id:
            logger.warning("Stored set id %d out of range", set_id)
            return 1
        logger.debug("Restored current set %d", set_id)
        return set_id

    def _persist_set_id(self) -> None:
        try:
            self.progress.set(CURRENT_SET_KEY, str(self._set_id))
        except StorageError as e:
            logger.warning("Saving current set failed: %s", e)
