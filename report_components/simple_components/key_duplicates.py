from typing import Dict, Any, List

import numpy as np
import pandas as pd

from dupprof.models import SampleRow, DuplicateGroup, risk_level
from preprocessing.dataset import to_python
from report_components.base_component import ReportComponent, AnalysisContext
from utils.consts import DEFAULT_SAMPLE_LIMIT, DEFAULT_MAX_GROUPS


def key_group_ids(key_df: pd.DataFrame) -> pd.Series:
    """
    Assign every row the id of its key group.

    Each key column is factorized with missing values kept as a regular
    code, so two nulls in the same key position land in the same group.
    Grouping then runs over the integer codes only.
    """
    if len(key_df) == 0:
        return pd.Series([], index=key_df.index, dtype="int64")

    codes = {}
    for position in range(key_df.shape[1]):
        column_codes, _ = pd.factorize(key_df.iloc[:, position], use_na_sentinel=False)
        codes[position] = column_codes

    code_df = pd.DataFrame(codes, index=key_df.index)
    return code_df.groupby(list(code_df.columns), sort=False).ngroup()


def group_sizes_from_ids(ids: pd.Series) -> np.ndarray:
    """Cardinality of each row's key group, in row order."""
    return ids.map(ids.value_counts()).to_numpy(dtype="int64")


class KeyDuplicateComponent(ReportComponent):
    """
    Detects rows that share their key values with at least one other row.
    """

    def __init__(
        self,
        context: AnalysisContext,
        sample_limit: int = DEFAULT_SAMPLE_LIMIT,
        max_groups: int = DEFAULT_MAX_GROUPS
    ):
        super().__init__(context)
        self.sample_limit = sample_limit
        self.max_groups = max_groups

    def analyze(self):
        self.context.validate_keys()
        key_df = self.context.key_frame()

        id_series = key_group_ids(key_df)
        ids = id_series.to_numpy(dtype="int64")
        sizes = group_sizes_from_ids(id_series)
        duplicate_mask = sizes > 1
        positions = np.flatnonzero(duplicate_mask)

        self.result = {
            "summary": self._compute_summary(len(key_df), duplicate_mask, ids),
            "group_sizes": sizes,
            "sample": self._sample(positions, sizes),
            "groups": self._group_duplicates(ids, duplicate_mask),
        }
        self.result["impact"] = self._assess_impact(self.result["summary"])

        self.context.shared_artifacts["group_sizes"] = sizes
        self.context.shared_artifacts["has_key_duplicates"] = bool(positions.size > 0)

    @staticmethod
    def _compute_summary(
        total: int, duplicate_mask: np.ndarray, ids: np.ndarray
    ) -> Dict[str, Any]:
        duplicates = int(duplicate_mask.sum())
        return {
            "total_rows": int(total),
            "duplicate_rows": duplicates,
            "duplicate_ratio": round(duplicates / total, 5) if total else 0.0,
            "unique_rows": int(total - duplicates),
            "duplicate_groups": int(np.unique(ids[duplicate_mask]).size),
        }

    def _sample(self, positions: np.ndarray, sizes: np.ndarray) -> List[SampleRow]:
        dataset = self.context.dataset
        return [
            SampleRow(
                record=dataset.record_at(int(position)),
                group_size=int(sizes[position]),
                row_index=int(position)
            )
            for position in positions[:self.sample_limit]
        ]

    def _group_duplicates(
        self, ids: np.ndarray, duplicate_mask: np.ndarray
    ) -> List[DuplicateGroup]:
        if not duplicate_mask.any() or self.max_groups == 0:
            return []

        rows = pd.DataFrame({
            "group": ids[duplicate_mask],
            "position": np.flatnonzero(duplicate_mask),
        })
        stats = rows.groupby("group", sort=False)["position"].agg(["first", "size"])
        stats = stats.sort_values(["size", "first"], ascending=[False, True], kind="stable")

        groups = []
        for first, count in stats.head(self.max_groups).itertuples(index=False):
            record = self.context.dataset.record_at(int(first))
            key = {col: to_python(record.get(col)) for col in self.context.key_columns}
            groups.append(DuplicateGroup(key=key, count=int(count), first_row_index=int(first)))
        return groups

    @staticmethod
    def _assess_impact(summary: Dict[str, Any]) -> Dict[str, Any]:
        if summary["duplicate_rows"] == 0:
            return {"risk_level": "none"}

        return {
            "duplication_pressure": summary["duplicate_ratio"],
            "risk_level": risk_level(summary["duplicate_ratio"]),
            "implications": [
                "Key is not unique and cannot serve as a primary key",
                "Joins on this key will fan out rows",
                "Aggregates keyed on these columns will double count"
            ]
        }

    def summarize(self) -> dict:
        result = self._require_result()

        return {
            "duplicate_rows": result["summary"]["duplicate_rows"],
            "duplicate_ratio": result["summary"]["duplicate_ratio"],
            "duplicate_groups": result["summary"]["duplicate_groups"],
            "sample_size": len(result["sample"]),
            "risk_level": result["impact"].get("risk_level", "none")
        }

    def justify(self) -> str:
        return (
            "A candidate key is only usable if no two rows share its values. "
            "Counting the rows that take part in a repeated key group, and showing "
            "a sample of them with their group sizes, tells whether the key can be "
            "enforced as a constraint and where the offending rows are. Null key "
            "values are grouped together, so missing keys show up as duplicates "
            "rather than silently passing."
        )
