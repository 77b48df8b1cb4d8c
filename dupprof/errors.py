from typing import Iterable, List, Optional


class SchemaError(ValueError):
    """Raised when a referenced column (or table) is not part of the schema."""

    def __init__(
        self,
        missing_columns: Iterable[str],
        available_columns: Optional[Iterable[str]] = None,
        message: Optional[str] = None
    ):
        self.missing_columns: List[str] = list(missing_columns)
        self.available_columns: List[str] = list(available_columns or [])
        if message is None:
            message = f"Columns not found in schema: {self.missing_columns}"
            if self.available_columns:
                message += f" (available: {self.available_columns})"
        super().__init__(message)


def check_columns(requested: Iterable[str], available: Iterable[str]) -> None:
    available = list(available)
    known = set(available)
    missing = [col for col in requested if col not in known]
    if missing:
        raise SchemaError(missing, available)
