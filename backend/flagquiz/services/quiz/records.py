from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Protocol, Sequence


# Per-round time budget and timer cadence (seconds)
ROUND_DURATION_SEC = 20
TICK_INTERVAL_SEC = 1
# How long the revealed answer stays on screen before the next flag
FEEDBACK_DURATION_SEC = 3.2


class Mode(str, Enum):
    EASY = 'easy'
    MEDIUM = 'medium'
    HARD = 'hard'
    EXPERT = 'expert'


# None means "the whole dataset"
MODE_COUNTS: Dict[Mode, Optional[int]] = {
    Mode.EASY: 20,
    Mode.MEDIUM: 50,
    Mode.HARD: 100,
    Mode.EXPERT: None,
}


class Language(str, Enum):
    SPANISH = 'es'
    ENGLISH = 'en'


class Phase(str, Enum):
    MENU = 'menu'
    PLAYING = 'playing'
    FINISHED = 'finished'


class Outcome(str, Enum):
    SUCCESS = 'success'
    ERROR = 'error'
    TIMEOUT = 'timeout'


@dataclass(frozen=True)
class CountryRecord:
    code: str
    name_es: str
    name_en: str

    def name_for(self, language: Language) -> str:
        return self.name_es if language == Language.SPANISH else self.name_en

    def alternate_for(self, language: Language) -> str:
        return self.name_en if language == Language.SPANISH else self.name_es

    @classmethod
    def from_dict(cls, data) -> 'CountryRecord':
        return cls(code=data['code'], name_es=data['nameEs'], name_en=data['nameEn'])


class DatasetProvider(Protocol):
    """Read-only source of country records consumed by the queue builder."""

    def get_all(self) -> Sequence[CountryRecord]:
        ...

    def length(self) -> int:
        ...


def round_count(mode: Mode, dataset_size: int) -> int:
    """Number of rounds a session in `mode` plays over a dataset of this size."""
    requested = MODE_COUNTS[Mode(mode)]
    if requested is None:
        return dataset_size
    return min(requested, dataset_size)
