from dataclasses import dataclass, field
from typing import List, Tuple

from doubles_scheduler.errors import PreconditionError

Team = Tuple[int, int]

# 一度も休んでいない選手の「前回の休み」
FAR_PAST = -999


def make_team(a: int, b: int) -> Team:
    if a == b:
        raise PreconditionError(f"同じ選手 {a} でペアは組めません")
    return (a, b) if a < b else (b, a)


def court_layout(active: int, courts: int) -> Tuple[int, int]:
    """Return ``(courts_used, byes)`` for ``active`` players on ``courts`` courts.

    ``active - byes`` is always a multiple of four, so the playing pool is
    always even.
    """
    if active < 4:
        raise PreconditionError(f"出場できる選手が足りません ({active} < 4)")
    if courts < 1:
        raise PreconditionError(f"コート数は 1 以上 ({courts})")
    used = min(courts, active // 4)
    return used, active - 4 * used


@dataclass(frozen=True)
class Match:
    team1: Team
    team2: Team

    def players(self) -> Tuple[int, int, int, int]:
        return self.team1 + self.team2

    def cross_pairs(self):
        for i in self.team1:
            for j in self.team2:
                yield i, j

    def to_dict(self) -> dict:
        return {"team1": list(self.team1), "team2": list(self.team2)}


@dataclass(frozen=True)
class Round:
    matches: Tuple[Match, ...]
    byes: Tuple[int, ...] = ()
    relaxed: bool = field(default=False, compare=False)

    def players(self) -> List[int]:
        return [p for m in self.matches for p in m.players()]

    def pair_list(self) -> List[List[int]]:
        """Flat ``[[a, b], [c, d], ...]`` list, two consecutive pairs per court."""
        pairs = []
        for m in self.matches:
            pairs.append(list(m.team1))
            pairs.append(list(m.team2))
        return pairs

    def to_dict(self) -> dict:
        return {
            "matches": [m.to_dict() for m in self.matches],
            "byes": list(self.byes),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Round":
        try:
            matches = tuple(
                Match(make_team(*m["team1"]), make_team(*m["team2"]))
                for m in data["matches"]
            )
            byes = tuple(data.get("byes", ()))
        except (KeyError, TypeError) as exc:
            raise PreconditionError(f"ラウンドの形式が不正です: {data!r}") from exc
        return cls(matches, byes, bool(data.get("relaxed", False)))
