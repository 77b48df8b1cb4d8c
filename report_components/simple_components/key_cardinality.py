from typing import Dict, Any

import pandas as pd

from report_components.base_component import ReportComponent, AnalysisContext
from utils.consts import KEY_CANDIDATE_UNIQUENESS


class KeyCardinalityComponent(ReportComponent):
    def __init__(self, context: AnalysisContext):
        super().__init__(context)

    def analyze(self):
        self.context.validate_keys()
        key_df = self.context.key_frame()

        self.result = {
            "rows": int(len(key_df)),
            "cardinality": self._analyze_cardinality(key_df),
        }

    def _analyze_cardinality(self, key_df: pd.DataFrame) -> Dict[str, Any]:
        cardinality = {}
        total = len(key_df)

        for i, col in enumerate(self.context.key_columns):
            series = key_df.iloc[:, i]
            unique = series.nunique(dropna=True)
            nulls = int(series.isna().sum())
            ratio = unique / total if total else 0.0

            cardinality[col] = {
                "unique_values": int(unique),
                "uniqueness_ratio": round(ratio, 5),
                "null_values": nulls,
                "single_column_key": bool(
                    total > 0 and ratio >= KEY_CANDIDATE_UNIQUENESS and nulls == 0
                )
            }

        return cardinality

    def summarize(self) -> dict:
        result = self._require_result()

        return {
            "rows": result["rows"],
            "single_column_keys": [
                col for col, info in result["cardinality"].items()
                if info["single_column_key"]
            ],
            "uniqueness_ratio": {
                col: info["uniqueness_ratio"]
                for col, info in result["cardinality"].items()
            }
        }

    def justify(self) -> str:
        return (
            "Per-column cardinality shows which key columns carry the uniqueness. "
            "A column that is unique and never null on its own makes the rest of a "
            "composite key redundant, while a low-cardinality column points at the "
            "part of the key that produces the collisions."
        )
