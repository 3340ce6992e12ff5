"""
途中棄権による再生成

カット位置より前のラウンドはそのまま残し、制約状態はそれらを最初から
再生して作り直す (差分更新はしない)。残りのラウンドは棄権者を除いた
選手だけで生成し直す。
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Sequence

from doubles_scheduler.errors import PreconditionError
from doubles_scheduler.models import court_layout
from doubles_scheduler.stats import Statistics

if TYPE_CHECKING:
    from doubles_scheduler.engine import DoublesScheduler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegenerationResult:
    success: bool
    message: str
    stats: Statistics
    active: List[int]
    withdrawn: List[int]
    rounds_regenerated: int


def regenerate_from(
    sched: "DoublesScheduler",
    cut: int,
    players: Sequence[int],
    new_total: Optional[int] = None,
) -> RegenerationResult:
    """Withdraw ``players`` and regenerate rounds ``[cut, total)``.

    Everything is validated before the scheduler is touched, so a rejected
    call (``PreconditionError``) leaves it exactly as it was.
    """
    played = len(sched.rounds)
    if isinstance(cut, bool) or not isinstance(cut, int) or not 0 <= cut < played:
        raise PreconditionError(f"ラウンド {cut!r} は不正です (0..{played - 1})")
    leaving = {sched.state.check_player(p) for p in players}
    total = sched.n_rounds if new_total is None else new_total
    if isinstance(total, bool) or not isinstance(total, int) or total < cut:
        raise PreconditionError(f"新しいラウンド数 {total!r} はカット位置 {cut} 未満です")

    withdrawn = sched.withdrawn | leaving
    active = [p for p in range(sched.P) if p not in withdrawn]
    used, byes = court_layout(len(active), sched.C)

    logger.info(
        "再生成: ラウンド %d から, 棄権 %s (累計 %s)",
        cut + 1, sorted(leaving), sorted(withdrawn),
    )
    sched.withdrawn = withdrawn
    sched.n_rounds = total
    sched.rounds = sched.rounds[:cut]
    sched.rebuild_state()
    logger.debug("%d ラウンドを保持, %d コート, 休み %d 人/ラウンド", cut, used, byes)

    added = sched.generate_until(total)
    stats = sched.statistics()
    success = added == total - cut
    message = f"{added} ラウンドを {len(active)} 人で再生成"
    if not success:
        message += f" (要求 {total - cut} ラウンド)"
        logger.warning(message)
    return RegenerationResult(
        success=success,
        message=message,
        stats=stats,
        active=active,
        withdrawn=sched.withdrawn_players(),
        rounds_regenerated=added,
    )
