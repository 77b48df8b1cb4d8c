from dataclasses import dataclass, field, asdict
from typing import Dict, Any, List

from utils.consts import LOW_DUPLICATES_RATIO, MEDIUM_DUPLICATES_RATIO


def risk_level(ratio: float) -> str:
    if ratio <= 0:
        return "none"
    if ratio < LOW_DUPLICATES_RATIO:
        return "low"
    if ratio < MEDIUM_DUPLICATES_RATIO:
        return "medium"
    return "high"


@dataclass(frozen=True)
class SampleRow:
    """A record taking part in a duplicate key group."""
    record: Dict[str, Any]
    group_size: int
    row_index: int


@dataclass(frozen=True)
class DuplicateGroup:
    """Key values shared by more than one record."""
    key: Dict[str, Any]
    count: int
    first_row_index: int


@dataclass(frozen=True)
class DuplicateReport:
    """
    Result of profiling a relation against a candidate key.

    Null key values are grouped as equal (``nulls_grouped`` is always True),
    which differs from SQL equality where NULL never equals NULL. Rows with
    a null in any key column are counted in ``null_key_count`` so callers can
    tell how much of the duplication comes from missing keys.
    """
    key_columns: List[str]
    total_count: int
    duplicate_count: int
    sample: List[SampleRow]
    sample_limit: int
    duplicate_group_count: int = 0
    groups: List[DuplicateGroup] = field(default_factory=list)
    null_key_count: int = 0
    nulls_grouped: bool = True

    @property
    def unique_count(self) -> int:
        return self.total_count - self.duplicate_count

    @property
    def duplicate_ratio(self) -> float:
        if self.total_count == 0:
            return 0.0
        return round(self.duplicate_count / self.total_count, 5)

    @property
    def risk_level(self) -> str:
        return risk_level(self.duplicate_ratio)

    @property
    def has_duplicates(self) -> bool:
        return self.duplicate_count > 0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["unique_count"] = self.unique_count
        data["duplicate_ratio"] = self.duplicate_ratio
        data["risk_level"] = self.risk_level
        return data
