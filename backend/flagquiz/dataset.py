import json
from typing import Iterable, Sequence, Tuple

from flagquiz.services.quiz.records import CountryRecord


class CountryDataset:
    """Ordered, read-only collection of country records.

    Handed to each quiz engine at construction time; the engine only ever
    reads it.
    """

    def __init__(self, records: Iterable[CountryRecord]):
        self._records: Tuple[CountryRecord, ...] = tuple(records)

    def get_all(self) -> Sequence[CountryRecord]:
        return self._records

    def length(self) -> int:
        return len(self._records)

    def __len__(self):
        return len(self._records)

    @classmethod
    def from_json(cls, path: str) -> 'CountryDataset':
        """Load `[{code, nameEs, nameEn}, ...]` from a JSON file."""
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return cls(CountryRecord.from_dict(item) for item in data)

    @classmethod
    def from_database(cls) -> 'CountryDataset':
        """Load the seeded Country table. Requires an app context."""
        from flagquiz.models import Country
        return cls(row.to_record() for row in Country.query.order_by(Country.id).all())
