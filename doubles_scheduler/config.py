from dataclasses import dataclass

from doubles_scheduler.errors import PreconditionError

# 休み優先度: 休み回数 × BYE_WEIGHT − 前回の休みからの間隔
BYE_WEIGHT = 1000


@dataclass
class SchedulerConfig:
    exact_pairing: bool = False      # CP-SAT で完全マッチングを解く
    solver_time_limit: float = 2.0   # 秒
    bye_weight: int = BYE_WEIGHT

    def __post_init__(self):
        if self.solver_time_limit <= 0:
            raise PreconditionError("solver_time_limit は正の値")
        if self.bye_weight <= 0:
            raise PreconditionError("bye_weight は正の値")
