"""Domain model dataclasses and enums for vnest."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class WordType(str, Enum):
    """Type tag carried by every word card."""

    AGENT = "Agent"
    VERB = "Verb"
    PATIENT = "Patient"

    @property
    def collection(self) -> str:
        """Storage collection holding words of this type."""
        return WORD_COLLECTIONS[self]


class Feedback(str, Enum):
    """Result of validating a subject/object pick.

    The value is the message shown to the player.
    """

    NONE = ""
    CORRECT = "✅ Hyvin tehty!"
    INCORRECT = "❌ Yritä uudelleen"

    @property
    def message(self) -> str | None:
        return self.value or None


class Phase(str, Enum):
    """Lifecycle phase of an exercise session."""

    LOADING = "loading"
    PLAYING = "playing"
    VALIDATING = "validating"
    FEEDBACK = "feedback"
    CONGRATS = "congrats"
    PROGRESS = "progress"
    ERROR = "error"
    CLOSED = "closed"


class AdvanceOutcome(str, Enum):
    """What happened when the player asked for the next set."""

    NEXT_SET = "next_set"
    NO_MORE_SETS = "no_more_sets"
    IGNORED = "ignored"


TRIO_COLLECTION = "avp_trios"

WORD_COLLECTIONS: dict[WordType, str] = {
    WordType.AGENT: "agents",
    WordType.VERB: "verbs",
    WordType.PATIENT: "patients",
}

ALL_COLLECTIONS: tuple[str, ...] = (
    "agents", "verbs", "patients", TRIO_COLLECTION,
)

# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Word:
    """A word card: subject (Agent), verb, or object (Patient)."""

    id: int
    value: str
    type: WordType


@dataclass(frozen=True, slots=True)
class Trio:
    """A known agent-verb-patient combination and whether it fits."""

    id: int
    agent_id: int
    verb_id: int
    patient_id: int
    is_fitting: bool

    @property
    def key(self) -> tuple[int, int, int]:
        return (self.agent_id, self.verb_id, self.patient_id)


@dataclass(frozen=True, slots=True)
class WordBundle:
    """Cards shown for one exercise. Index 0 holds the fitting pair."""

    verb: Word
    agents: tuple[Word, ...]
    patients: tuple[Word, ...]


@dataclass(frozen=True, slots=True)
class WordSet:
    """A numbered level grouping a handful of verbs."""

    id: int
    name: str
    level: int
    verb_ids: tuple[int, ...]


@dataclass(frozen=True, slots=True)
class ExerciseState:
    """Immutable snapshot of an exercise session."""

    phase: Phase
    set_id: int
    verb: Word | None
    subjects: tuple[Word, ...]
    objects: tuple[Word, ...]
    selected_subject: Word | None
    selected_object: Word | None
    feedback: Feedback
    correct_answers: int
    error: str | None

    @property
    def is_exercise_complete(self) -> bool:
        return (
            self.selected_subject is not None
            and self.selected_object is not None
            and self.feedback is not Feedback.NONE
        )

    @property
    def can_proceed(self) -> bool:
        return self.is_exercise_complete and self.feedback is Feedback.CORRECT
