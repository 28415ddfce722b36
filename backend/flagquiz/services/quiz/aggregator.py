from dataclasses import dataclass, replace

from .records import Outcome


@dataclass(frozen=True)
class Tally:
    """Running score and counters for one session.

    Every completed round (answered or timed out) lands in exactly one of
    `correct_count` or `error_count`, and `score` only ever grows.
    """
    score: int = 0
    correct_count: int = 0
    error_count: int = 0

    @property
    def rounds_completed(self) -> int:
        return self.correct_count + self.error_count

    def record(self, outcome: Outcome, awarded: int = 0) -> 'Tally':
        if outcome == Outcome.SUCCESS:
            return replace(self, score=self.score + max(0, awarded), correct_count=self.correct_count + 1)
        return replace(self, error_count=self.error_count + 1)

    def to_dict(self):
        return {
            'score': self.score,
            'correct_count': self.correct_count,
            'error_count': self.error_count,
            'rounds_completed': self.rounds_completed,
        }
