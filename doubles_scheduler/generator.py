"""
1 ラウンド生成

  1. 休み (bye) の選択      ― 休み回数の均等化、次に前回の休みからの間隔
  2. ペア (パートナー) 作成 ― MRV 貪欲法、だめなら緩和パス
  3. 対戦 (マッチ) 作成     ― 対戦回数の重複を避ける

初回生成でも途中棄権後の再生成でも同じロジックを使う。
"""

import logging
from itertools import combinations
from typing import List, Optional, Sequence, Tuple

from ortools.sat.python import cp_model

from doubles_scheduler.config import SchedulerConfig
from doubles_scheduler.errors import GenerationExhausted, PreconditionError
from doubles_scheduler.models import Match, Round, Team, court_layout, make_team
from doubles_scheduler.state import ConstraintState

logger = logging.getLogger(__name__)

# 対戦回数 → コスト。3 回以上は構造的に避けられない場合のみ
OPPONENT_COST = {0: 0, 1: 10, 2: 100}
OPPONENT_COST_MAX = 10000


def opponent_penalty(count: int) -> int:
    return OPPONENT_COST.get(count, OPPONENT_COST_MAX)


class RoundGenerator:
    def __init__(self, state: ConstraintState, courts: int, config: Optional[SchedulerConfig] = None):
        self.state = state
        self.courts = courts
        self.config = config or SchedulerConfig()

    # パブリック
    def generate(self, round_index: int, pool: Sequence[int]) -> Round:
        """Build and commit one round for ``pool``.

        Raises ``GenerationExhausted`` if no structurally valid round exists;
        the state is left untouched in that case.
        """
        pool = sorted(self.state.check_player(p) for p in pool)
        if len(set(pool)) != len(pool):
            raise PreconditionError(f"選手プールに重複があります: {pool}")
        _, n_byes = court_layout(len(pool), self.courts)

        byes = self.select_byes(round_index, pool, n_byes)
        resting = set(byes)
        playing = [p for p in pool if p not in resting]

        teams, relaxed = self.pair_partners(playing)
        if teams is None:
            raise GenerationExhausted(round_index, "ペアを作れません")
        matches = self.form_matches(teams)
        if matches is None:
            raise GenerationExhausted(round_index, "対戦を組めません")

        rnd = Round(tuple(matches), tuple(sorted(byes)), relaxed)
        self.state.commit(rnd, round_index)
        if relaxed:
            logger.info("ラウンド %d: ペア制約を緩和しました", round_index + 1)
        return rnd

    # ── フェーズ 1: 休み ──
    def bye_priority(self, p: int, round_index: int) -> int:
        st = self.state
        return st.bye_count[p] * self.config.bye_weight - (round_index - st.last_bye[p])

    def select_byes(self, round_index: int, pool: Sequence[int], n_byes: int) -> List[int]:
        if n_byes <= 0:
            return []
        ranked = sorted(pool, key=lambda p: (self.bye_priority(p, round_index), p))
        return ranked[:n_byes]

    # ── フェーズ 2: ペア ──
    def pair_partners(self, players: Sequence[int]) -> Tuple[Optional[List[Team]], bool]:
        """Return ``(teams, relaxed)``; ``relaxed`` means a repeat was allowed."""
        players = sorted(players)
        if len(players) % 2:
            raise PreconditionError(f"出場選手が奇数です ({len(players)} 人)")
        if not players:
            return [], False

        if self.config.exact_pairing:
            teams = self._pair_exact(players)
            if teams is not None:
                return teams, any(self.state.partner[a][b] for a, b in teams)
            logger.warning("CP-SAT で解が得られないため貪欲法に切り替えます")

        teams = self._pair_mrv(players)
        if teams is not None:
            return teams, False
        logger.debug("ペア制約の緩和パスへ (%d 人)", len(players))
        teams = self._pair_relaxed(players)
        return teams, teams is not None

    def _fresh_partners(self, p: int, free: Sequence[int], skip: Optional[int] = None) -> int:
        row = self.state.partner[p]
        return sum(1 for q in free if q != p and q != skip and row[q] == 0)

    def _pair_mrv(self, players: List[int]) -> Optional[List[Team]]:
        # 選択肢の少ない選手から決める (fail-first)
        free = list(players)
        teams = []
        while free:
            best = min(free, key=lambda p: self._fresh_partners(p, free))
            if self._fresh_partners(best, free) == 0:
                return None
            row = self.state.partner[best]
            candidates = [q for q in free if q != best and row[q] == 0]
            mate = min(candidates, key=lambda q: self._fresh_partners(q, free, skip=best))
            teams.append(make_team(best, mate))
            free.remove(best)
            free.remove(mate)
        return teams

    def _pair_relaxed(self, players: List[int]) -> Optional[List[Team]]:
        # インデックス順、同点なら小さいインデックス
        free = list(players)
        teams = []
        while free:
            p = free.pop(0)
            if not free:
                return None
            row = self.state.partner[p]
            mate = min(free, key=lambda q: row[q])
            teams.append(make_team(p, mate))
            free.remove(mate)
        return teams

    def _pair_exact(self, players: List[int]) -> Optional[List[Team]]:
        model = cp_model.CpModel()
        x = {
            (i, j): model.NewBoolVar(f"x_{i}_{j}")
            for i, j in combinations(players, 2)
        }
        for p in players:
            model.AddExactlyOne([v for (i, j), v in x.items() if p in (i, j)])
        model.Minimize(sum(self.state.partner[i][j] * v for (i, j), v in x.items()))

        solver = cp_model.CpSolver()
        solver.parameters.max_time_in_seconds = self.config.solver_time_limit
        solver.parameters.num_workers = 1
        status = solver.Solve(model)
        if status not in (cp_model.OPTIMAL, cp_model.FEASIBLE):
            return None
        return [make_team(i, j) for (i, j), v in x.items() if solver.BooleanValue(v)]

    # ── フェーズ 3: 対戦 ──
    def opponent_cost(self, t1: Team, t2: Team) -> int:
        opp = self.state.opponent
        return sum(opponent_penalty(opp[i][j]) for i in t1 for j in t2)

    def form_matches(self, teams: Sequence[Team]) -> Optional[List[Match]]:
        free = list(teams)
        matches = []
        while free:
            t1 = free.pop(0)
            if not free:
                return None
            t2 = min(free, key=lambda t: self.opponent_cost(t1, t))
            free.remove(t2)
            matches.append(Match(t1, t2))
        return matches
