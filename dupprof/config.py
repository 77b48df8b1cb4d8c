import numbers
from dataclasses import dataclass
from typing import List

from utils.consts import DEFAULT_SAMPLE_LIMIT, DEFAULT_MAX_GROUPS


def _is_count(value) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool) and value >= 0


@dataclass
class ProfilerConfig:
    sample_limit: int = DEFAULT_SAMPLE_LIMIT
    max_groups: int = DEFAULT_MAX_GROUPS
    key_nulls: bool = True
    key_cardinality: bool = True
    engine: str = "auto"
    verbose: bool = False

    def __post_init__(self):
        if not _is_count(self.sample_limit):
            raise ValueError(f"sample_limit must be a non-negative integer, got {self.sample_limit!r}")
        if not _is_count(self.max_groups):
            raise ValueError(f"max_groups must be a non-negative integer, got {self.max_groups!r}")
        if self.engine not in ("auto", "pandas", "polars"):
            raise ValueError(f"Unknown engine: {self.engine}")

    def get_enabled_components(self) -> List[str]:
        components = ["key_duplicates"]
        if self.key_nulls:
            components.append("key_nulls")
        if self.key_cardinality:
            components.append("key_cardinality")
        return components
