from report_components.base_component import ReportComponent, AnalysisContext


class KeyNullsComponent(ReportComponent):
    def __init__(self, context: AnalysisContext):
        super().__init__(context)

    def analyze(self):
        self.context.validate_keys()
        key_df = self.context.key_frame()
        total = len(key_df)

        null_mask = key_df.isna()
        null_counts = {
            col: int(null_mask.iloc[:, i].sum())
            for i, col in enumerate(self.context.key_columns)
        }
        null_ratio = {
            col: round(count / total, 5) if total else 0.0
            for col, count in null_counts.items()
        }
        null_key_rows = int(null_mask.any(axis=1).sum()) if total else 0

        self.result = {
            "null_counts": null_counts,
            "null_ratio": null_ratio,
            "null_key_rows": null_key_rows,
            "columns_with_nulls": [
                col for col, count in null_counts.items() if count > 0
            ]
        }
        self.context.shared_artifacts["null_key_rows"] = null_key_rows

    def summarize(self) -> dict:
        result = self._require_result()
        return {
            "null_key_rows": result["null_key_rows"],
            "columns_with_nulls": result["columns_with_nulls"],
            "worst_columns": sorted(
                result["null_ratio"].items(),
                key=lambda x: x[1],
                reverse=True
            )[:3]
        }

    def justify(self) -> str:
        return (
            "Duplicate grouping treats null key values as equal, while SQL equality "
            "never matches NULL to NULL. Reporting how many rows carry a null in a "
            "key column shows how much of the duplication comes from missing keys "
            "and whether a NOT NULL constraint would fail as well."
        )
