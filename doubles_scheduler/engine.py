"""
スケジューラ本体

ラウンド生成を指定回数まで繰り返し、統計と妥当性判定を提供する。
途中棄権による再生成は regeneration.regenerate_from を参照。
"""

import logging
from dataclasses import asdict
from typing import List, Optional, Sequence, Set

from doubles_scheduler.config import SchedulerConfig
from doubles_scheduler.errors import GenerationExhausted, PreconditionError
from doubles_scheduler.generator import RoundGenerator
from doubles_scheduler.models import Round, court_layout
from doubles_scheduler.regeneration import RegenerationResult, regenerate_from
from doubles_scheduler.state import ConstraintState
from doubles_scheduler.stats import Statistics, compute_statistics

logger = logging.getLogger(__name__)


def _require_int(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise PreconditionError(f"{name} は整数: {value!r}")
    return value


class DoublesScheduler:
    def __init__(
        self,
        P: int,
        C: int,
        rounds: Optional[int] = None,
        config: Optional[SchedulerConfig] = None,
    ):
        P, C = _require_int("P", P), _require_int("C", C)
        if P < 4:
            raise PreconditionError(f"人数 P は 4 以上が必要です ({P})")
        if C < 1:
            raise PreconditionError(f"コート数 C は 1 以上が必要です ({C})")
        self.P, self.C = P, C
        self.config = config or SchedulerConfig()
        # 全員が毎回違うパートナーと組めるのは最大 P-1 ラウンド
        self.ceiling = P - 1
        if rounds is None:
            self.n_rounds = self.ceiling
        else:
            rounds = _require_int("rounds", rounds)
            if rounds < 0:
                raise PreconditionError(f"ラウンド数は 0 以上 ({rounds})")
            self.n_rounds = min(rounds, self.ceiling)
        self.withdrawn: Set[int] = set()
        self.rounds: List[Round] = []
        self.state = ConstraintState(P)
        self.exhausted: Optional[GenerationExhausted] = None

    # ── 参加者 ──
    def active_players(self) -> List[int]:
        return [p for p in range(self.P) if p not in self.withdrawn]

    def withdrawn_players(self) -> List[int]:
        return sorted(self.withdrawn)

    @property
    def courts_used(self) -> int:
        return court_layout(len(self.active_players()), self.C)[0]

    @property
    def byes_per_round(self) -> int:
        return court_layout(len(self.active_players()), self.C)[1]

    def reinstate(self, p: int) -> bool:
        """Put ``p`` back in the pool. Takes effect on the next regeneration."""
        self.state.check_player(p)
        if p not in self.withdrawn:
            return False
        self.withdrawn.discard(p)
        logger.info("選手 %d を復帰 (再生成が必要)", p)
        return True

    # ── 生成 ──
    def build(self) -> Statistics:
        logger.info(
            "生成: %d 人, %d コート, %d ラウンド (休み %d 人/ラウンド)",
            self.P, self.C, self.n_rounds, self.byes_per_round,
        )
        self.rounds = []
        self.state = ConstraintState(self.P)
        self.generate_until(self.n_rounds)
        return self.statistics()

    def generate_until(self, total: int) -> int:
        """Append rounds until there are ``total``; return how many were added.

        Stops at the first ``GenerationExhausted`` and keeps what was built.
        """
        gen = RoundGenerator(self.state, self.C, self.config)
        pool = self.active_players()
        start = len(self.rounds)
        self.exhausted = None
        for t in range(start, total):
            try:
                self.rounds.append(gen.generate(t, pool))
            except GenerationExhausted as exc:
                logger.warning("%s (%d/%d ラウンドで停止)", exc, t, total)
                self.exhausted = exc
                break
        return len(self.rounds) - start

    def next_round(self) -> Round:
        """Generate one more round on top of the current schedule."""
        gen = RoundGenerator(self.state, self.C, self.config)
        rnd = gen.generate(len(self.rounds), self.active_players())
        self.rounds.append(rnd)
        self.n_rounds = max(self.n_rounds, len(self.rounds))
        return rnd

    def rebuild_state(self, upto: Optional[int] = None) -> ConstraintState:
        """Throw away the counters and replay rounds ``[0, upto)``."""
        self.state = ConstraintState.replay(self.P, self.rounds[:upto])
        return self.state

    def withdraw(self, cut: int, players: Sequence[int], new_total: Optional[int] = None) -> RegenerationResult:
        return regenerate_from(self, cut, players, new_total)

    # ── 統計 ──
    def statistics(self) -> Statistics:
        return compute_statistics(self.state, self.rounds, self.active_players(), self.n_rounds)

    def is_valid(self) -> bool:
        return self.statistics().acceptable()

    # ── スナップショット ──
    def export_state(self) -> dict:
        return {
            "players": self.P,
            "courts": self.C,
            "rounds_requested": self.n_rounds,
            "config": asdict(self.config),
            "withdrawn": self.withdrawn_players(),
            "rounds": [dict(r.to_dict(), relaxed=r.relaxed) for r in self.rounds],
            "state": self.state.to_dict(),
        }

    @classmethod
    def from_state(cls, data: dict) -> "DoublesScheduler":
        """Restore a snapshot from ``export_state`` without replaying rounds."""
        try:
            sched = cls(data["players"], data["courts"], config=SchedulerConfig(**data.get("config", {})))
            requested = _require_int("rounds_requested", data["rounds_requested"])
            rounds = [Round.from_dict(r) for r in data["rounds"]]
            withdrawn = data.get("withdrawn", [])
            state = ConstraintState.from_dict(sched.P, data["state"])
        except (KeyError, TypeError) as exc:
            raise PreconditionError(f"スナップショットの形式が不正です: {exc}") from exc
        if requested < 0:
            raise PreconditionError(f"ラウンド数は 0 以上 ({requested})")
        for rnd in rounds:
            state.check_round(rnd)
        sched.withdrawn = {state.check_player(p) for p in withdrawn}
        # 再開後に生成できない状態は受け付けない
        court_layout(len(sched.active_players()), sched.C)
        sched.n_rounds = requested
        sched.rounds = rounds
        sched.state = state
        return sched
