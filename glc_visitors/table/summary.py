# summary.py — counts shown above the visitors grid
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

from ..models import CATEGORY_FIELD

MALE = "male"
FEMALE = "female"

_CATEGORY_CODES = {
    "m": MALE, "male": MALE,
    "f": FEMALE, "female": FEMALE,
}


@dataclass(frozen=True)
class SummaryStats:
    total: int = 0
    male: int = 0
    female: int = 0


def normalize_category(val: Any) -> Optional[str]:
    """'M', ' male ' -> 'male'; unknown or blank -> None."""
    if val is None:
        return None
    return _CATEGORY_CODES.get(str(val).strip().lower())


def summarize(rows: Iterable[Dict[str, Any]]) -> SummaryStats:
    total = male = female = 0
    for row in rows:
        total += 1
        cat = normalize_category(row.get(CATEGORY_FIELD))
        if cat == MALE:
            male += 1
        elif cat == FEMALE:
            female += 1
    return SummaryStats(total=total, male=male, female=female)
