"""ダブルス組み合わせ生成"""

from doubles_scheduler.adapter import TournamentAdapter
from doubles_scheduler.config import SchedulerConfig
from doubles_scheduler.engine import DoublesScheduler
from doubles_scheduler.errors import GenerationExhausted, PreconditionError, SchedulerError
from doubles_scheduler.models import Match, Round, court_layout
from doubles_scheduler.regeneration import RegenerationResult, regenerate_from
from doubles_scheduler.state import ConstraintState
from doubles_scheduler.stats import Statistics, player_table

__all__ = [
    "ConstraintState",
    "DoublesScheduler",
    "GenerationExhausted",
    "Match",
    "PreconditionError",
    "RegenerationResult",
    "Round",
    "SchedulerConfig",
    "SchedulerError",
    "Statistics",
    "TournamentAdapter",
    "court_layout",
    "player_table",
    "regenerate_from",
]
