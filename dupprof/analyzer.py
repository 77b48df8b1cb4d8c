import dataclasses
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Union, Dict, Any, Callable, Sequence, Mapping, List

import pandas as pd

from dupprof.config import ProfilerConfig
from dupprof.models import DuplicateReport
from preprocessing.dataset import Dataset
from utils.consts import POLARS_SIZE_THRESHOLD_MB, DEFAULT_SAMPLE_LIMIT
from report_components.base_component import AnalysisContext
from core.report import Report

from report_components.simple_components.key_duplicates import KeyDuplicateComponent
from report_components.simple_components.key_nulls import KeyNullsComponent
from report_components.simple_components.key_cardinality import KeyCardinalityComponent

logger = logging.getLogger(__name__)

Records = Sequence[Mapping[str, Any]]


def normalize_key_columns(key_columns: Union[str, Sequence[str]]) -> List[str]:
    if isinstance(key_columns, str):
        key_columns = [key_columns]
    key_columns = list(key_columns)
    if not key_columns:
        raise ValueError("key_columns must not be empty")
    return key_columns


class DuplicateProfiler:
    def __init__(
        self,
        data: Union[str, Path, pd.DataFrame, Records],
        key_columns: Union[str, Sequence[str]],
        config: Optional[ProfilerConfig] = None,
        columns: Optional[Sequence[str]] = None,
        verbose: Optional[bool] = None,
        log_callback: Optional[Callable[[str], None]] = None
    ):
        self.config = config or ProfilerConfig()
        self.key_columns = normalize_key_columns(key_columns)
        self._verbose = self.config.verbose if verbose is None else verbose
        self._log_callback = log_callback
        self._dataset = self._load_dataset(data, columns)
        self._context = AnalysisContext(self._dataset, self.key_columns)
        self._report = Report()
        self._results: Dict[str, Any] = {}
        self._duplicate_report: Optional[DuplicateReport] = None
        self._component_count = 0
        self._total_components = 0

    def _log(self, message: str):
        if not self._verbose:
            return
        timestamp = datetime.now().strftime("%H:%M:%S")
        formatted = f"[{timestamp}] {message}"
        if self._log_callback:
            self._log_callback(formatted)
        else:
            logger.info(formatted)

    def _load_dataset(
        self, data: Union[str, Path, pd.DataFrame, Records], columns: Optional[Sequence[str]]
    ) -> Dataset:
        if isinstance(data, pd.DataFrame):
            self._log("Loading DataFrame directly with pandas engine")
            return Dataset.from_dataframe(data)

        if not isinstance(data, (str, Path)):
            self._log("Loading in-memory records with pandas engine")
            return Dataset.from_records(data, columns=columns)

        path = str(data)
        engine = self.config.engine

        if engine == "auto":
            engine = None
            self._log("Engine set to auto - will use recommended based on file size")
        else:
            self._log(f"Engine specified: {engine}")

        dataset = Dataset.from_file(path, engine=engine)
        info = dataset.get_info()

        self._log(f"Dataset: {path}")
        self._log(f"File size: {info['file_size_mb']:.2f} MB | Threshold: {POLARS_SIZE_THRESHOLD_MB} MB")
        self._log(f"Recommended engine: {info['recommended_engine'].upper()}")
        self._log(f"Using engine: {info['engine'].upper()}")

        return dataset

    def analyze(self) -> "DuplicateProfiler":
        self._context.validate_keys()

        enabled = self.config.get_enabled_components()
        self._total_components = len(enabled)
        self._component_count = 0

        self._log(f"Profiling key {self.key_columns} with {self._total_components} components...")

        duplicates = KeyDuplicateComponent(
            self._context,
            sample_limit=self.config.sample_limit,
            max_groups=self.config.max_groups
        )
        self._run_component(duplicates, "Key Duplicates")

        if "key_nulls" in enabled:
            self._run_component(KeyNullsComponent(self._context), "Key Nulls")

        if "key_cardinality" in enabled:
            self._run_component(KeyCardinalityComponent(self._context), "Key Cardinality")

        self._duplicate_report = self._build_report(duplicates)
        self._log("Profiling complete!")
        return self

    def _run_component(self, component, name: str) -> None:
        self._component_count += 1
        self._log(f"[{self._component_count}/{self._total_components}] Running: {name}")
        self._report.add_component(component)
        self._results[component.__class__.__name__] = self._report.run_component(component)
        self._log(f"[{self._component_count}/{self._total_components}] Completed: {name}")

    def _build_report(self, duplicates: KeyDuplicateComponent) -> DuplicateReport:
        result = duplicates.result
        null_key_rows = self._context.shared_artifacts.get("null_key_rows")
        if null_key_rows is None:
            null_key_rows = int(self._context.key_frame().isna().any(axis=1).sum())

        return DuplicateReport(
            key_columns=list(self.key_columns),
            total_count=result["summary"]["total_rows"],
            duplicate_count=result["summary"]["duplicate_rows"],
            sample=list(result["sample"]),
            sample_limit=self.config.sample_limit,
            duplicate_group_count=result["summary"]["duplicate_groups"],
            groups=list(result["groups"]),
            null_key_count=null_key_rows,
        )

    def get_report(self) -> DuplicateReport:
        if self._duplicate_report is None:
            raise RuntimeError("analyze() must be called before get_report()")
        return self._duplicate_report

    def get_results(self) -> Dict[str, Any]:
        return self._results

    def get_summary(self, component_name: str) -> Optional[Dict[str, Any]]:
        return self._results.get(component_name)

    def get_engine_info(self) -> Dict[str, Any]:
        info = self._dataset.get_info()
        return {
            "engine": info["engine"],
            "recommended_engine": info["recommended_engine"],
            "file_size_mb": info["file_size_mb"],
            "threshold_mb": POLARS_SIZE_THRESHOLD_MB
        }

    @property
    def dataframe(self) -> pd.DataFrame:
        return self._dataset.df

    @property
    def components(self):
        return self._report.components


def profile(
    records: Records,
    key_columns: Union[str, Sequence[str]],
    sample_limit: int = DEFAULT_SAMPLE_LIMIT,
    *,
    columns: Optional[Sequence[str]] = None,
    config: Optional[ProfilerConfig] = None
) -> DuplicateReport:
    """
    Profile ``records`` for duplicates under ``key_columns``.

    Rows are grouped by their key values with nulls treated as equal, so
    rows whose keys are both missing count as duplicates of each other. The
    report's ``null_key_count`` says how many rows that affects.

    Raises SchemaError when a key column is not in the schema (``columns``
    when given, otherwise the record fields). The input is not modified and
    sample records are copies.
    """
    config = dataclasses.replace(config or ProfilerConfig(), sample_limit=sample_limit)
    profiler = DuplicateProfiler(records, key_columns, config=config, columns=columns)
    return profiler.analyze().get_report()
