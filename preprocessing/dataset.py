import numpy as np
import pandas as pd
import polars as pl

import os
from pathlib import Path
from typing import Optional, Literal, Sequence, Mapping, Any, Dict, List

from utils.consts import POLARS_SIZE_THRESHOLD_MB

Engine = Literal["pandas", "polars"]


def to_python(value: Any) -> Any:
    """Convert numpy scalars to builtins and any missing marker to None."""
    if isinstance(value, np.generic):
        value = value.item()
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        # containers have no single truth value for isna
        pass
    return value


class Dataset:
    def __init__(
        self,
        path: Optional[str] = None,
        engine: Optional[Engine] = None,
        dataframe: Optional[pd.DataFrame] = None,
        records: Optional[Sequence[Mapping[str, Any]]] = None,
        columns: Optional[Sequence[str]] = None
    ):
        sources = [src is not None for src in (path, dataframe, records)]
        if sum(sources) != 1:
            raise ValueError("Exactly one of path, dataframe or records must be provided")

        self.path = Path(path) if path is not None else None
        self.file_size_bytes = os.path.getsize(path) if path is not None else 0
        self.file_size_mb = self.file_size_bytes / (1024 * 1024)

        self._recommended_engine = self._determine_recommended_engine()

        if engine:
            self._engine = engine
        else:
            self._engine = self._recommended_engine

        self._df_pandas: Optional[pd.DataFrame] = None
        self._df_polars = None
        self._records: Optional[List[Mapping[str, Any]]] = None
        self._explicit_columns = list(columns) if columns is not None else None

        if records is not None:
            self._records = list(records)
            self._df_pandas = self._frame_from_records(self._records, self._explicit_columns)
        elif dataframe is not None:
            self._df_pandas = dataframe
        else:
            self._load_data()

    @staticmethod
    def _frame_from_records(
        records: List[Mapping[str, Any]], columns: Optional[List[str]]
    ) -> pd.DataFrame:
        # object dtype keeps the original values; numeric inference would turn
        # an int column holding a None into float64 and merge large ints
        rows = [dict(record) for record in records]
        if columns is not None:
            return pd.DataFrame(rows, columns=columns, dtype=object)
        return pd.DataFrame(rows, dtype=object)

    def _determine_recommended_engine(self) -> Engine:
        return "polars" if self.file_size_mb > POLARS_SIZE_THRESHOLD_MB else "pandas"

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def recommended_engine(self) -> Engine:
        return self._recommended_engine

    @property
    def df(self) -> pd.DataFrame:
        if self._df_pandas is None:
            if self._engine == "polars" and self._df_polars is not None:
                self._df_pandas = self._df_polars.to_pandas()
            else:
                self._load_as_pandas()
        return self._df_pandas

    @property
    def columns(self) -> List[str]:
        if self._explicit_columns is not None:
            return list(self._explicit_columns)
        return list(self.df.columns)

    @property
    def has_schema(self) -> bool:
        """False only for record input with no rows and no declared columns."""
        if self._explicit_columns is not None or self._records is None:
            return True
        return len(self._records) > 0

    def __len__(self) -> int:
        return len(self.df)

    def record_at(self, position: int) -> Dict[str, Any]:
        """Return a copy of the record at ``position`` in input order."""
        if self._records is not None:
            return dict(self._records[position])
        df = self.df
        return {col: to_python(df.iat[position, i]) for i, col in enumerate(df.columns)}

    def _load_data(self):
        if self._engine == "polars":
            self._load_as_polars()
        else:
            self._load_as_pandas()

    def _load_as_pandas(self):
        ext = self.path.suffix.lower()

        if ext == ".csv":
            self._df_pandas = pd.read_csv(self.path)
        elif ext == ".parquet":
            self._df_pandas = pd.read_parquet(self.path)
        elif ext == ".json":
            self._df_pandas = pd.read_json(self.path)
        elif ext == ".orc":
            self._df_pandas = pd.read_orc(self.path)
        elif ext == ".xlsx":
            # Requires: openpyxl
            self._df_pandas = pd.read_excel(self.path, engine="openpyxl")
        else:
            raise ValueError(f"Unsupported file format: {ext}")

    def _load_as_polars(self):
        ext = self.path.suffix.lower()

        if ext == ".csv":
            self._df_polars = pl.read_csv(self.path)
        elif ext == ".parquet":
            self._df_polars = pl.read_parquet(self.path)
        elif ext == ".json":
            self._df_polars = pl.read_json(self.path)
        elif ext in (".orc", ".xlsx"):
            # No stable polars reader for these, go through pandas.
            self._load_as_pandas()
            self._df_polars = pl.from_pandas(self._df_pandas)
            return
        else:
            raise ValueError(f"Unsupported file format: {ext}")

        self._df_pandas = self._df_polars.to_pandas()

    def get_info(self) -> dict:
        return {
            "path": str(self.path) if self.path is not None else None,
            "source": self._source_kind(),
            "file_size_mb": round(self.file_size_mb, 2),
            "engine": self._engine,
            "recommended_engine": self._recommended_engine,
            "rows": len(self.df),
            "columns": len(self.columns)
        }

    def _source_kind(self) -> str:
        if self.path is not None:
            return "file"
        if self._records is not None:
            return "records"
        return "dataframe"

    @classmethod
    def from_records(
        cls,
        records: Sequence[Mapping[str, Any]],
        columns: Optional[Sequence[str]] = None
    ) -> "Dataset":
        return cls(records=records, columns=columns, engine="pandas")

    @classmethod
    def from_dataframe(cls, dataframe: pd.DataFrame) -> "Dataset":
        return cls(dataframe=dataframe, engine="pandas")

    @classmethod
    def from_file(cls, path: str, engine: Optional[Engine] = None) -> "Dataset":
        return cls(path, engine=engine)
