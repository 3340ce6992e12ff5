"""スケジューラの例外"""


class SchedulerError(Exception):
    """Base exception for all doubles scheduler errors."""

    pass


class PreconditionError(SchedulerError, ValueError):
    """Raised when an operation is rejected before anything is mutated.

    Odd pool at pairing time, fewer than 4 active players, an invalid cut
    index or an out-of-range player index.
    """

    pass


class GenerationExhausted(SchedulerError):
    """Raised when a round cannot be produced even after relaxation."""

    def __init__(self, round_index: int, reason: str):
        super().__init__(f"ラウンド {round_index + 1} を生成できません: {reason}")
        self.round_index = round_index
        self.reason = reason
