"""
Shared pytest fixtures for the doubles scheduler tests.
"""
import pytest

from doubles_scheduler import DoublesScheduler


def assert_round_covers(rnd, pool):
    """Every pool player is on exactly one team or on the bye list."""
    playing = rnd.players()
    assert len(playing) == len(set(playing))
    assert sorted(playing + list(rnd.byes)) == sorted(pool)
    for m in rnd.matches:
        for team in (m.team1, m.team2):
            assert len(team) == 2
            assert team[0] != team[1]


@pytest.fixture
def build():
    """Factory: build a schedule and return the scheduler."""
    def _build(players, courts, rounds=None, config=None):
        sched = DoublesScheduler(players, courts, rounds, config)
        sched.build()
        return sched
    return _build


@pytest.fixture
def twelve(build):
    """12 players, 3 courts, 10 rounds."""
    return build(12, 3, 10)
