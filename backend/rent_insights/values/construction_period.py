"""Construction period buckets used by the rent-control dataset."""

from enum import IntEnum
from typing import List

from rent_insights.core.exceptions import InvalidInput


class ConstructionPeriod(IntEnum):
    BEFORE_1946 = 1
    BETWEEN_1946_1970 = 2
    BETWEEN_1971_1990 = 3
    AFTER_1990 = 4

    @property
    def label(self) -> str:
        return _LABELS[self]

    @classmethod
    def from_label(cls, label: str) -> "ConstructionPeriod":
        """Parse the dataset's "Epoque de construction" value; no default bucket."""
        for period, period_label in _LABELS.items():
            if label == period_label:
                return period
        raise InvalidInput(
            f"Unknown construction period: {label!r}",
            details={"allowed": cls.labels()},
        )

    @classmethod
    def labels(cls) -> List[str]:
        return [period.label for period in cls]


_LABELS = {
    ConstructionPeriod.BEFORE_1946: "Avant 1946",
    ConstructionPeriod.BETWEEN_1946_1970: "1946-1970",
    ConstructionPeriod.BETWEEN_1971_1990: "1971-1990",
    ConstructionPeriod.AFTER_1990: "Apres 1990",
}
