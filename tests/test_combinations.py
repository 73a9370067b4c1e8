"""Tests for CombinationService validation and sampling."""

import random

import pytest

from vnest import CombinationService, SetCatalog, WordBundle, WordRepository, WordType


@pytest.fixture
def small_combinations(store, small_data_dir, rng):
    repo = WordRepository(store, data_dir=small_data_dir)
    return CombinationService(repo, SetCatalog.load(small_data_dir), rng=rng)


class TestIsCorrect:

    def test_agrees_with_every_trio(self, combinations, repository):
        for trio in repository.trios():
            assert combinations.is_correct(*trio.key) is trio.is_fitting, trio

    def test_scenario_eat(self, small_combinations):
        # Äiti syö omenaa fits; Lapsi syö omenaa is not a known fitting trio
        assert small_combinations.is_correct(1, 1, 1)
        assert not small_combinations.is_correct(2, 1, 1)
        assert not small_combinations.is_correct(2, 1, 2)

    @pytest.mark.parametrize("key", [(999, 1, 1), (1, 999, 1), (1, 1, 999)])
    def test_unknown_ids(self, combinations, key):
        assert combinations.is_correct(*key) is False

    def test_by_words(self, combinations):
        assert combinations.is_correct_words("äiti", "SYÖ", "omenaa")
        assert not combinations.is_correct_words("Lapsi", "Syö", "maitoa")
        assert not combinations.is_correct_words("Koira", "Syö", "omenaa")


class TestTriplesForVerb:

    def test_filters_by_verb_and_flag(self, combinations):
        fitting = combinations.triples_for_verb(1, True, 10)
        assert {t.id for t in fitting} == {1, 2}
        unfitting = combinations.triples_for_verb(1, False, 10)
        assert {t.id for t in unfitting} == {3, 4, 5}

    def test_no_duplicates_and_capped(self, combinations, repository):
        verb_ids = {t.verb_id for t in repository.trios()}
        for verb_id in verb_ids:
            for fitting in (True, False):
                available = [
                    t for t in repository.trios_for_verb(verb_id)
                    if t.is_fitting == fitting
                ]
                for count in range(0, len(available) + 3):
                    sample = combinations.triples_for_verb(verb_id, fitting, count)
                    ids = [t.id for t in sample]
                    assert len(ids) == len(set(ids))
                    assert len(ids) == min(count, len(available))

    def test_unknown_verb(self, combinations):
        assert combinations.triples_for_verb(999, True, 3) == []

    def test_non_positive_count(self, combinations):
        assert combinations.triples_for_verb(1, True, 0) == []
        assert combinations.triples_for_verb(1, True, -2) == []

    def test_reproducible_with_seed(self, repository):
        a = CombinationService(repository, rng=random.Random(7))
        b = CombinationService(repository, rng=random.Random(7))
        assert a.triples_for_verb(1, False, 2) == b.triples_for_verb(1, False, 2)


class TestWordBundle:

    def test_first_pair_fits_for_every_playable_verb(self, combinations):
        for verb in combinations.playable_verbs():
            bundle = combinations.word_bundle_for_verb(verb.id)
            assert isinstance(bundle, WordBundle)
            assert bundle.verb == verb
            assert combinations.is_correct(
                bundle.agents[0].id, verb.id, bundle.patients[0].id,
            )

    def test_three_cards(self, combinations):
        bundle = combinations.word_bundle_for_verb(1)
        assert len(bundle.agents) == 3
        assert len(bundle.patients) == 3
        assert all(a.type is WordType.AGENT for a in bundle.agents)
        assert all(p.type is WordType.PATIENT for p in bundle.patients)

    def test_other_pairs_do_not_fit(self, combinations):
        bundle = combinations.word_bundle_for_verb(1)
        for agent, patient in zip(bundle.agents[1:], bundle.patients[1:]):
            assert not combinations.is_correct(agent.id, 1, patient.id)

    def test_unknown_verb(self, combinations):
        assert combinations.word_bundle_for_verb(999) is None

    def test_verb_without_trios(self, small_combinations):
        assert small_combinations.word_bundle_for_verb(4) is None

    def test_verb_without_fitting_trio(self, small_combinations):
        bundle = small_combinations.word_bundle_for_verb(3)
        # only the non-fitting card is available
        assert [a.value for a in bundle.agents] == ["Kokki"]

    def test_fewer_cards_when_data_is_short(self, small_combinations):
        bundle = small_combinations.word_bundle_for_verb(2)
        assert [a.value for a in bundle.agents] == ["Lapsi", "Äiti"]
        assert [p.value for p in bundle.patients] == ["maitoa", "pastaa"]

    def test_card_counts_configurable(self, repository):
        service = CombinationService(repository, fitting_cards=2, unfitting_cards=3)
        bundle = service.word_bundle_for_verb(1)
        assert len(bundle.agents) == 5


class TestSets:

    def test_playable_verbs_for_set(self, combinations):
        assert [v.value for v in combinations.playable_verbs(1)] == ["Syö", "Juo", "Kokkaa"]

    def test_playable_verbs_skip_unfitting(self, small_combinations):
        assert small_combinations.playable_verbs(3) == []
        assert [v.id for v in small_combinations.playable_verbs()] == [1, 2]

    def test_unknown_set(self, combinations):
        assert combinations.playable_verbs(42) == []
        assert combinations.random_bundle_for_set(42) is None

    def test_random_bundle_stays_in_set(self, combinations, sets):
        for set_id in sets.ids():
            for _ in range(5):
                bundle = combinations.random_bundle_for_set(set_id)
                assert bundle.verb.id in sets.get(set_id).verb_ids

    def test_random_bundle_without_catalog(self, repository, rng):
        service = CombinationService(repository, rng=rng)
        assert service.random_bundle_for_set() is not None
        assert service.playable_verbs(1) == []

    def test_bundle_for_set_start(self, combinations):
        assert combinations.bundle_for_set_start(2).verb.value == "Juoksee"
        assert combinations.bundle_for_set_start(42) is None
