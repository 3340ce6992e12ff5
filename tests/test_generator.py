"""
Tests for single-round generation: byes, partner pairing, match formation.
"""
from typing import Optional, get_type_hints

import pytest

from doubles_scheduler import (
    ConstraintState,
    GenerationExhausted,
    Match,
    PreconditionError,
    SchedulerConfig,
)
from doubles_scheduler.generator import RoundGenerator, opponent_penalty

from conftest import assert_round_covers


def _set_partner(state, a, b, count):
    state.partner[a][b] = state.partner[b][a] = count


def _set_opponent(state, a, b, count):
    state.opponent[a][b] = state.opponent[b][a] = count


class TestByeSelection:

    def test_no_byes(self):
        gen = RoundGenerator(ConstraintState(8), 2)
        assert gen.select_byes(0, list(range(8)), 0) == []

    def test_fresh_state_takes_lowest_indices(self):
        gen = RoundGenerator(ConstraintState(10), 2)
        assert gen.select_byes(0, list(range(10)), 2) == [0, 1]

    def test_fewest_byes_first(self):
        state = ConstraintState(6)
        state.bye_count = [1, 1, 0, 1, 0, 1]
        state.last_bye = [0, 1, -999, 2, -999, 3]
        gen = RoundGenerator(state, 1)
        assert gen.select_byes(4, list(range(6)), 2) == [2, 4]

    def test_longest_gap_breaks_count_ties(self):
        state = ConstraintState(5)
        state.bye_count = [1, 1, 1, 1, 1]
        state.last_bye = [3, 0, 2, 1, 4]
        gen = RoundGenerator(state, 1)
        assert gen.select_byes(5, list(range(5)), 1) == [1]

    def test_restricted_pool(self):
        gen = RoundGenerator(ConstraintState(10), 2)
        assert gen.select_byes(0, [3, 5, 6, 7, 8, 9], 1) == [3]


class TestPartnerPairing:

    def test_odd_pool_is_a_precondition_error(self):
        gen = RoundGenerator(ConstraintState(5), 1)
        with pytest.raises(PreconditionError):
            gen.pair_partners([0, 1, 2, 3, 4])

    def test_empty_pool(self):
        gen = RoundGenerator(ConstraintState(4), 1)
        assert gen.pair_partners([]) == ([], False)

    def test_fresh_state_pairs_neighbours(self):
        gen = RoundGenerator(ConstraintState(8), 2)
        teams, relaxed = gen.pair_partners(list(range(8)))
        assert teams == [(0, 1), (2, 3), (4, 5), (6, 7)]
        assert relaxed is False

    def test_avoids_previous_partners(self):
        state = ConstraintState(4)
        _set_partner(state, 0, 1, 1)
        _set_partner(state, 2, 3, 1)
        teams, relaxed = RoundGenerator(state, 1).pair_partners([0, 1, 2, 3])
        assert teams == [(0, 2), (1, 3)]
        assert relaxed is False

    def test_most_constrained_player_goes_first(self):
        state = ConstraintState(4)
        # 3 can only pair with 0
        _set_partner(state, 1, 3, 1)
        _set_partner(state, 2, 3, 1)
        teams, relaxed = RoundGenerator(state, 1).pair_partners([0, 1, 2, 3])
        assert teams == [(0, 3), (1, 2)]
        assert relaxed is False

    def test_relaxes_when_no_fresh_partner_exists(self):
        state = ConstraintState(4)
        for a, b in [(0, 1), (0, 2), (0, 3)]:
            _set_partner(state, a, b, 1)
        _set_partner(state, 0, 2, 2)
        teams, relaxed = RoundGenerator(state, 1).pair_partners([0, 1, 2, 3])
        assert relaxed is True
        # relaxed pass: 0 takes its least repeated partner, lowest index on ties
        assert teams == [(0, 1), (2, 3)]

    def test_relaxed_pass_prefers_lowest_count(self):
        state = ConstraintState(4)
        for a, b in [(0, 1), (0, 2), (0, 3), (1, 2), (1, 3), (2, 3)]:
            _set_partner(state, a, b, 2)
        _set_partner(state, 0, 3, 1)
        gen = RoundGenerator(state, 1)
        assert gen._pair_relaxed([0, 1, 2, 3]) == [(0, 3), (1, 2)]


class TestExactPairing:

    def test_avoids_repeats(self):
        state = ConstraintState(4)
        _set_partner(state, 0, 1, 1)
        _set_partner(state, 2, 3, 1)
        gen = RoundGenerator(state, 1, SchedulerConfig(exact_pairing=True))
        teams, relaxed = gen.pair_partners([0, 1, 2, 3])
        assert relaxed is False
        assert (0, 1) not in teams and (2, 3) not in teams
        assert sorted(p for t in teams for p in t) == [0, 1, 2, 3]

    def test_minimises_repeat_cost(self):
        state = ConstraintState(4)
        for a, b in [(0, 1), (0, 2), (0, 3), (1, 2), (1, 3), (2, 3)]:
            _set_partner(state, a, b, 3)
        _set_partner(state, 0, 2, 1)
        _set_partner(state, 1, 3, 1)
        gen = RoundGenerator(state, 1, SchedulerConfig(exact_pairing=True))
        teams, relaxed = gen.pair_partners([0, 1, 2, 3])
        assert sorted(teams) == [(0, 2), (1, 3)]
        assert relaxed is True

    def test_falls_back_to_greedy_without_solution(self, monkeypatch):
        gen = RoundGenerator(ConstraintState(8), 2, SchedulerConfig(exact_pairing=True))
        monkeypatch.setattr(gen, "_pair_exact", lambda players: None)
        teams, relaxed = gen.pair_partners(list(range(8)))
        assert teams == [(0, 1), (2, 3), (4, 5), (6, 7)]
        assert relaxed is False


class TestMatchFormation:

    @pytest.mark.parametrize("count,cost", [(0, 0), (1, 10), (2, 100), (3, 10000), (7, 10000)])
    def test_penalty(self, count, cost):
        assert opponent_penalty(count) == cost

    def test_fresh_state_keeps_team_order(self):
        gen = RoundGenerator(ConstraintState(8), 2)
        matches = gen.form_matches([(0, 1), (2, 3), (4, 5), (6, 7)])
        assert matches == [Match((0, 1), (2, 3)), Match((4, 5), (6, 7))]

    def test_avoids_repeated_opponents(self):
        state = ConstraintState(8)
        for i in (0, 1):
            for j in (2, 3):
                _set_opponent(state, i, j, 1)
        gen = RoundGenerator(state, 2)
        matches = gen.form_matches([(0, 1), (2, 3), (4, 5), (6, 7)])
        assert matches == [Match((0, 1), (4, 5)), Match((2, 3), (6, 7))]

    def test_opponent_cost(self):
        state = ConstraintState(4)
        _set_opponent(state, 0, 2, 1)
        _set_opponent(state, 1, 3, 2)
        _set_opponent(state, 1, 2, 3)
        assert RoundGenerator(state, 1).opponent_cost((0, 1), (2, 3)) == 10 + 100 + 10000

    def test_odd_team_count(self):
        gen = RoundGenerator(ConstraintState(6), 1)
        assert gen.form_matches([(0, 1), (2, 3), (4, 5)]) is None


class TestGenerate:

    def test_round_commits_state(self):
        state = ConstraintState(9)
        rnd = RoundGenerator(state, 2).generate(0, range(9))
        assert rnd.byes == (0,)
        assert_round_covers(rnd, range(9))
        assert state.bye_count[0] == 1
        assert state.last_bye[0] == 0
        assert state.max_partner() == 1
        assert state.is_symmetric()

    def test_round_shape(self):
        state = ConstraintState(10)
        rnd = RoundGenerator(state, 3).generate(0, range(10))
        assert len(rnd.matches) == 2
        assert len(rnd.byes) == 2

    def test_pool_too_small(self):
        with pytest.raises(PreconditionError):
            RoundGenerator(ConstraintState(8), 2).generate(0, [0, 1, 2])

    def test_duplicate_pool_entries(self):
        with pytest.raises(PreconditionError):
            RoundGenerator(ConstraintState(8), 1).generate(0, [0, 1, 2, 3, 3])

    def test_exhaustion_commits_nothing(self, monkeypatch):
        state = ConstraintState(8)
        gen = RoundGenerator(state, 2)
        monkeypatch.setattr(gen, "form_matches", lambda teams: None)
        with pytest.raises(GenerationExhausted) as excinfo:
            gen.generate(4, range(8))
        assert excinfo.value.round_index == 4
        assert state.to_dict() == ConstraintState(8).to_dict()

    def test_optional_arguments(self):
        assert get_type_hints(RoundGenerator.__init__)["config"] == Optional[SchedulerConfig]
        assert get_type_hints(RoundGenerator._fresh_partners)["skip"] == Optional[int]
        gen = RoundGenerator(ConstraintState(4), 1)
        assert gen.config == SchedulerConfig()
        assert gen._fresh_partners(0, [0, 1, 2, 3]) == 3
        assert gen._fresh_partners(0, [0, 1, 2, 3], skip=1) == 2
