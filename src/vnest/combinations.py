"""CombinationService: trio validation and random exercise sampling."""

from __future__ import annotations

import logging
import random

from vnest.models import Trio, Word, WordBundle, WordType
from vnest.repository import WordRepository
from vnest.sets import SetCatalog

logger = logging.getLogger(__name__)


class CombinationService:
    """Answers whether a sentence fits and builds card bundles for verbs."""

    def __init__(
        self,
        repository: WordRepository,
        sets: SetCatalog | None = None,
        *,
        rng: random.Random | None = None,
        fitting_cards: int = 1,
        unfitting_cards: int = 2,
    ) -> None:
        self.repository = repository
        self.sets = sets
        self.rng = rng if rng is not None else random.Random()
        self.fitting_cards = fitting_cards
        self.unfitting_cards = unfitting_cards

    # ------------------------------------------------------------------
    # Sampling
    # ------------------------------------------------------------------

    def triples_for_verb(self, verb_id: int, fitting: bool, count: int = 1) -> list[Trio]:
        """Sample up to ``count`` distinct trios for a verb.

        Sampling is uniform and without replacement. If fewer than
        ``count`` trios match, all of them are returned.
        """
        if count <= 0:
            return []
        matching = [
            t for t in self.repository.trios_for_verb(verb_id)
            if t.is_fitting == fitting
        ]
        return self.rng.sample(matching, min(count, len(matching)))

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def is_correct(self, agent_id: int, verb_id: int, patient_id: int) -> bool:
        """True iff a fitting trio exists with exactly this key."""
        key = (agent_id, verb_id, patient_id)
        return any(
            t.is_fitting and t.key == key
            for t in self.repository.trios_for_verb(verb_id)
        )

    def is_correct_words(self, subject: str, verb: str, patient: str) -> bool:
        """Validate a sentence given as written words (case-insensitive)."""
        agent_word = self.repository.find_by_value(WordType.AGENT, subject)
        verb_word = self.repository.find_by_value(WordType.VERB, verb)
        patient_word = self.repository.find_by_value(WordType.PATIENT, patient)
        if agent_word is None or verb_word is None or patient_word is None:
            logger.debug("Unknown word in %r %r %r", subject, verb, patient)
            return False
        return self.is_correct(agent_word.id, verb_word.id, patient_word.id)

    # ------------------------------------------------------------------
    # Bundles
    # ------------------------------------------------------------------

    def word_bundle_for_verb(self, verb_id: int) -> WordBundle | None:
        """Build the cards for one exercise on ``verb_id``.

        Takes the fitting trio(s) first, then the non-fitting ones, and
        resolves their agents and patients. Returns None when the verb is
        unknown or has no trios.
        """
        verb = self.repository.get_by_id(WordType.VERB, verb_id)
        if verb is None:
            return None

        selected = (
            self.triples_for_verb(verb_id, True, self.fitting_cards)
            + self.triples_for_verb(verb_id, False, self.unfitting_cards)
        )
        if not selected:
            logger.warning("No AVP trio data found for verb id %d", verb_id)
            return None

        agents: list[Word] = []
        patients: list[Word] = []
        for trio in selected:
            agent = self.repository.get_by_id(WordType.AGENT, trio.agent_id)
            patient = self.repository.get_by_id(WordType.PATIENT, trio.patient_id)
            if agent is None or patient is None:
                logger.warning("Skipping trio %d with unresolved words", trio.id)
                continue
            agents.append(agent)
            patients.append(patient)
        if not agents:
            return None
        return WordBundle(verb=verb, agents=tuple(agents), patients=tuple(patients))

    def playable_verbs(self, set_id: int | None = None) -> list[Word]:
        """Verbs with at least one fitting trio, optionally within one set."""
        fitting_verbs = {t.verb_id for t in self.repository.trios() if t.is_fitting}
        verbs = self.repository.get_all(WordType.VERB)
        if set_id is not None:
            word_set = self.sets.get(set_id) if self.sets is not None else None
            if word_set is None:
                logger.warning("Unknown set: %r", set_id)
                return []
            order = {vid: i for i, vid in enumerate(word_set.verb_ids)}
            verbs = sorted((v for v in verbs if v.id in order), key=lambda v: order[v.id])
        return [v for v in verbs if v.id in fitting_verbs]

    def random_bundle_for_set(self, set_id: int | None = None) -> WordBundle | None:
        """Bundle for a random playable verb of a set (or of all verbs)."""
        verbs = self.playable_verbs(set_id)
        if not verbs:
            logger.warning("No playable verbs for set %r", set_id)
            return None
        verb = self.rng.choice(verbs)
        logger.debug("Selected random verb %s (id %d)", verb.value, verb.id)
        return self.word_bundle_for_verb(verb.id)

    def bundle_for_set_start(self, set_id: int) -> WordBundle | None:
        """Bundle for the first verb listed in a set."""
        verb_id = self.sets.first_verb_id(set_id) if self.sets is not None else None
        if verb_id is None:
            logger.warning("Set %r has no first verb", set_id)
            return None
        return self.word_bundle_for_verb(verb_id)
