"""
インデックス → 選手レコード変換

エンジンは整数インデックスしか扱わない。ここで呼び出し側の選手レコードと
コート番号付きの対戦 (equipe1 / equipe2) に変換する。
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from doubles_scheduler.config import SchedulerConfig
from doubles_scheduler.engine import DoublesScheduler
from doubles_scheduler.models import Round

logger = logging.getLogger(__name__)


class TournamentAdapter:
    def __init__(self, players: Sequence[Any], first_court: int = 1):
        self.players = list(players)
        self.first_court = first_court

    def resolve(self, idx) -> Optional[Any]:
        if isinstance(idx, int) and not isinstance(idx, bool) and 0 <= idx < len(self.players):
            record = self.players[idx]
            if record is not None:
                return record
        logger.warning("選手インデックス %r を解決できません", idx)
        return None

    def _resolve_all(self, indices) -> List[Any]:
        resolved = (self.resolve(i) for i in indices or ())
        return [r for r in resolved if r is not None]

    def index_of(self, record: Any) -> int:
        return self.players.index(record)

    # ── 変換 ──
    def convert_pairs(self, pairs: Sequence[Sequence[int]], byes: Sequence[int] = ()) -> Dict[str, list]:
        """Pairs come two per court: ``pairs[0]`` vs ``pairs[1]`` and so on."""
        matchs = []
        for k in range(0, len(pairs), 2):
            if k + 1 >= len(pairs) or not pairs[k] or not pairs[k + 1]:
                logger.warning("コート %d のペアが欠けています: %r", self.first_court + k // 2, pairs[k:k + 2])
                continue
            matchs.append(
                {
                    "terrain": self.first_court + k // 2,
                    "equipe1": self._resolve_all(pairs[k]),
                    "equipe2": self._resolve_all(pairs[k + 1]),
                    "score1": None,
                    "score2": None,
                }
            )
        return {"matchs": matchs, "byes": self._resolve_all(byes)}

    def convert_round(self, rnd: Round) -> Dict[str, list]:
        return self.convert_pairs(rnd.pair_list(), rnd.byes)

    def convert_schedule(self, rounds: Sequence[Round]) -> List[Dict[str, list]]:
        return [self.convert_round(r) for r in rounds]

    def schedule(self, courts: int, rounds: Optional[int] = None, config: Optional[SchedulerConfig] = None) -> DoublesScheduler:
        """Build a schedule sized to the player records."""
        config = config or SchedulerConfig()
        sched = DoublesScheduler(len(self.players), courts, rounds, config)
        sched.build()
        return sched
