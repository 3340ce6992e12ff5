from dataclasses import asdict, dataclass
from typing import Sequence

import pandas as pd

from doubles_scheduler.models import FAR_PAST, Round
from doubles_scheduler.state import ConstraintState

# 許容範囲: 休み回数の差 ≤ 1、同じパートナー ≤ 1 回、同じ相手 ≤ 3 回
MAX_BYE_SPREAD = 1
MAX_PARTNER_REPEAT = 1
MAX_OPPONENT_REPEAT = 3
# 違反件数としては 3 回目の対戦から数える
OPPONENT_WARN_REPEAT = 2


@dataclass(frozen=True)
class Statistics:
    rounds_generated: int
    rounds_requested: int
    bye_min: int
    bye_max: int
    bye_spread: int
    consecutive_bye_repeats: int
    max_partner_repeat: int
    partner_violation_count: int
    max_opponent_repeat: int
    opponent_violation_count: int
    relaxed_rounds: int

    @property
    def complete(self) -> bool:
        return self.rounds_generated >= self.rounds_requested

    def acceptable(self) -> bool:
        return (
            self.bye_spread <= MAX_BYE_SPREAD
            and self.max_partner_repeat <= MAX_PARTNER_REPEAT
            and self.max_opponent_repeat <= MAX_OPPONENT_REPEAT
        )

    def to_dict(self) -> dict:
        return asdict(self)


def compute_statistics(
    state: ConstraintState,
    rounds: Sequence[Round],
    active: Sequence[int],
    requested: int,
) -> Statistics:
    """Aggregate statistics for ``rounds``.

    Bye figures only look at ``active`` players, since a withdrawn player's
    count stops moving once they leave.
    """
    byes = [state.bye_count[p] for p in active] or [0]

    consecutive = 0
    for prev, cur in zip(rounds, rounds[1:]):
        consecutive += len(set(prev.byes) & set(cur.byes))

    partner = [state.partner[i][j] for i, j in state.pairs()]
    opponent = [state.opponent[i][j] for i, j in state.pairs()]
    return Statistics(
        rounds_generated=len(rounds),
        rounds_requested=requested,
        bye_min=min(byes),
        bye_max=max(byes),
        bye_spread=max(byes) - min(byes),
        consecutive_bye_repeats=consecutive,
        max_partner_repeat=max(partner, default=0),
        partner_violation_count=sum(1 for c in partner if c > MAX_PARTNER_REPEAT),
        max_opponent_repeat=max(opponent, default=0),
        opponent_violation_count=sum(1 for c in opponent if c > OPPONENT_WARN_REPEAT),
        relaxed_rounds=sum(1 for r in rounds if r.relaxed),
    )


def player_table(state: ConstraintState, active: Sequence[int]) -> pd.DataFrame:
    """One row per player: byes, partner and opponent spread."""
    active = set(active)
    rows = []
    for p in range(state.n):
        partners = [c for q, c in enumerate(state.partner[p]) if q != p]
        opponents = [c for q, c in enumerate(state.opponent[p]) if q != p]
        last = state.last_bye[p]
        rows.append(
            {
                "プレーヤー": p,
                "Rest": state.bye_count[p],
                "LastRest": None if last == FAR_PAST else last,
                "Partners": sum(1 for c in partners if c),
                "MaxPartner": max(partners, default=0),
                "Opponents": sum(1 for c in opponents if c),
                "MaxOpponent": max(opponents, default=0),
                "Active": p in active,
            }
        )
    return pd.DataFrame(rows).set_index("プレーヤー")
