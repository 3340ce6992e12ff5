"""
制約状態 (Constraint State)

ペア回数・対戦回数の対称行列と、休み回数・最後に休んだラウンド。
選手は 0..N-1 の整数インデックスのみで扱い、外部のオブジェクトは保持しない。
"""

import logging
from itertools import combinations
from typing import List, Sequence

from doubles_scheduler.errors import PreconditionError
from doubles_scheduler.models import FAR_PAST, Round

logger = logging.getLogger(__name__)


def _matrix(n: int) -> List[List[int]]:
    return [[0] * n for _ in range(n)]


class ConstraintState:
    def __init__(self, n_players: int):
        if n_players < 1:
            raise PreconditionError(f"選手数が不正です ({n_players})")
        self.n = n_players
        self.partner = _matrix(n_players)
        self.opponent = _matrix(n_players)
        self.bye_count = [0] * n_players
        self.last_bye = [FAR_PAST] * n_players

    # ── インデックス検証 ──
    def check_player(self, p) -> int:
        if isinstance(p, bool) or not isinstance(p, int):
            raise PreconditionError(f"選手インデックスは整数: {p!r}")
        if not 0 <= p < self.n:
            raise PreconditionError(f"選手インデックス {p} は範囲外 (0..{self.n - 1})")
        return p

    def check_round(self, rnd: Round) -> None:
        seen = set()
        for p in rnd.players() + list(rnd.byes):
            self.check_player(p)
            if p in seen:
                raise PreconditionError(f"選手 {p} が同じラウンドに二度登場します")
            seen.add(p)
        for m in rnd.matches:
            for team in (m.team1, m.team2):
                if len(team) != 2 or team[0] == team[1]:
                    raise PreconditionError(f"チームは異なる 2 人: {team!r}")

    # ── 更新 ──
    def commit(self, rnd: Round, round_index: int) -> None:
        """Apply a finished round. Counters only ever go up."""
        self.check_round(rnd)
        for m in rnd.matches:
            for a, b in (m.team1, m.team2):
                self.partner[a][b] += 1
                self.partner[b][a] += 1
            for i, j in m.cross_pairs():
                self.opponent[i][j] += 1
                self.opponent[j][i] += 1
        for p in rnd.byes:
            self.bye_count[p] += 1
            self.last_bye[p] = round_index

    @classmethod
    def replay(cls, n_players: int, rounds: Sequence[Round]) -> "ConstraintState":
        state = cls(n_players)
        for t, rnd in enumerate(rounds):
            state.commit(rnd, t)
        logger.debug("制約状態を %d ラウンドから再構築", len(rounds))
        return state

    # ── 集計 ──
    def pairs(self):
        return combinations(range(self.n), 2)

    def max_partner(self) -> int:
        return max((self.partner[i][j] for i, j in self.pairs()), default=0)

    def max_opponent(self) -> int:
        return max((self.opponent[i][j] for i, j in self.pairs()), default=0)

    def is_symmetric(self) -> bool:
        return all(
            self.partner[i][j] == self.partner[j][i]
            and self.opponent[i][j] == self.opponent[j][i]
            for i, j in self.pairs()
        )

    # ── スナップショット ──
    def to_dict(self) -> dict:
        return {
            "partner": [row[:] for row in self.partner],
            "opponent": [row[:] for row in self.opponent],
            "bye_count": self.bye_count[:],
            "last_bye": self.last_bye[:],
        }

    @classmethod
    def from_dict(cls, n_players: int, data: dict) -> "ConstraintState":
        state = cls(n_players)
        try:
            partner = [list(map(int, row)) for row in data["partner"]]
            opponent = [list(map(int, row)) for row in data["opponent"]]
            bye_count = list(map(int, data["bye_count"]))
            last_bye = list(map(int, data["last_bye"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise PreconditionError("制約状態の形式が不正です") from exc
        for name, mat in (("partner", partner), ("opponent", opponent)):
            if len(mat) != n_players or any(len(row) != n_players for row in mat):
                raise PreconditionError(f"{name} 行列のサイズが {n_players} と一致しません")
        if len(bye_count) != n_players or len(last_bye) != n_players:
            raise PreconditionError("休み配列のサイズが一致しません")
        state.partner, state.opponent = partner, opponent
        state.bye_count, state.last_bye = bye_count, last_bye
        if not state.is_symmetric():
            raise PreconditionError("ペア・対戦行列が対称ではありません")
        return state
