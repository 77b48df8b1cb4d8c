from abc import ABC, abstractmethod
from typing import List, Sequence

import pandas as pd

from dupprof.errors import check_columns


class AnalysisContext:
    def __init__(self, dataset, key_columns: Sequence[str]):
        self.dataset = dataset
        self.key_columns: List[str] = list(key_columns)
        self.shared_artifacts = {}
        self.component_results = {}

    def store_component_result(self, component_name: str, summary: dict):
        self.component_results[component_name] = summary

    def validate_keys(self):
        """Raise SchemaError unless every key column is in the dataset schema."""
        if not self.key_columns:
            raise ValueError("key_columns must not be empty")
        if self.dataset.has_schema:
            check_columns(self.key_columns, self.dataset.columns)

    def key_frame(self) -> pd.DataFrame:
        """Key columns of the dataset; empty frame when there is no schema."""
        df = self.dataset.df
        if not self.dataset.has_schema:
            return pd.DataFrame(index=df.index, columns=self.key_columns)
        return df[self.key_columns]


class ReportComponent(ABC):
    def __init__(self, context: AnalysisContext):
        self.context = context
        self.result = None

    @abstractmethod
    def analyze(self):
        pass

    @abstractmethod
    def summarize(self) -> dict:
        pass

    @abstractmethod
    def justify(self) -> str:
        pass

    def _require_result(self):
        if self.result is None:
            raise RuntimeError("analyze() must be called before summarize()")
        return self.result

    def get_full_summary(self) -> str:
        """Plain-text rendering of summarize(); override for richer output."""
        if self.result is None:
            return ""
        lines = [f"{'=' * 80}", self.__class__.__name__, f"{'=' * 80}"]
        for name, value in self.summarize().items():
            lines.append(f"{name}: {value}")
        return "\n".join(lines)
