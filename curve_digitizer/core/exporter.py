"""Data export module for CSV, JSON and Excel formats."""

from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd

from ..utils.config import config
from .geometry import DataPoint


class DataExporter:
    """Handles exporting a digitized X,Y series to various formats."""

    def __init__(
        self,
        data_points: list[DataPoint],
        x_label: str = "X",
        y_label: str = "Y",
        metadata: Optional[dict] = None
    ):
        """Initialize exporter.

        Args:
            data_points: Ordered DataPoint sequence
            x_label: Label for the X column
            y_label: Label for the Y column
            metadata: Optional metadata to include in Excel export
        """
        self.data_points = list(data_points)
        self.x_label = x_label
        self.y_label = y_label
        self.metadata = metadata or {}
        self._df = None

    @property
    def dataframe(self) -> pd.DataFrame:
        """Get data as pandas DataFrame (row order preserved, non-finite values as NaN)."""
        if self._df is None:
            self._df = pd.DataFrame(
                [(p.x, p.y) for p in self.data_points],
                columns=[self.x_label, self.y_label],
                dtype=float,
            ).replace([np.inf, -np.inf], np.nan)
        return self._df

    def to_csv_text(self, decimal_places: int = None) -> str:
        """Two-column CSV text with an "X,Y" header, one row per point.

        Args:
            decimal_places: Number of decimal places (default: from config)

        Returns:
            CSV text
        """
        if decimal_places is None:
            decimal_places = config.DEFAULT_DECIMAL_PLACES

        df = self.dataframe.round(decimal_places)
        return df.to_csv(index=False, na_rep="NaN", lineterminator="\n")

    def to_csv(
        self,
        filepath: str | Path,
        include_header: bool = True,
        decimal_places: int = None
    ) -> Path:
        """Export data to CSV file.

        Args:
            filepath: Output file path
            include_header: Include column headers
            decimal_places: Number of decimal places (default: from config)

        Returns:
            Path to created file
        """
        filepath = Path(filepath)

        if decimal_places is None:
            decimal_places = config.DEFAULT_DECIMAL_PLACES

        df = self.dataframe.round(decimal_places)
        df.to_csv(filepath, index=False, header=include_header, na_rep="NaN")

        return filepath

    def to_excel(
        self,
        filepath: str | Path,
        sheet_name: str = "Data",
        include_metadata: bool = True,
        decimal_places: int = None
    ) -> Path:
        """Export data to Excel file.

        Args:
            filepath: Output file path
            sheet_name: Name of the worksheet
            include_metadata: Include metadata in a separate sheet
            decimal_places: Number of decimal places (default: from config)

        Returns:
            Path to created file
        """
        if not self.data_points:
            raise ValueError("No data points to export")

        filepath = Path(filepath)

        if decimal_places is None:
            decimal_places = config.DEFAULT_DECIMAL_PLACES

        df = self.dataframe.round(decimal_places)

        with pd.ExcelWriter(filepath, engine='openpyxl') as writer:
            df.to_excel(writer, sheet_name=sheet_name, index=False)

            if include_metadata and self.metadata:
                meta_df = pd.DataFrame([
                    {"Property": k, "Value": str(v)}
                    for k, v in self.metadata.items()
                ])
                meta_df.to_excel(writer, sheet_name="Metadata", index=False)

        return filepath

    def to_records(self) -> list[dict]:
        """Export data as a list of {"X": ..., "Y": ...} records (NaN for non-finite values)."""
        return self.dataframe.to_dict(orient="records")

    def to_json(self, filepath: str | Path, indent: int = 2) -> Path:
        """Export data to JSON file (list of records).

        Args:
            filepath: Output file path
            indent: JSON indentation

        Returns:
            Path to created file
        """
        filepath = Path(filepath)

        self.dataframe.to_json(filepath, orient='records', indent=indent)

        return filepath


def export_to_csv(
    data_points: list[DataPoint],
    filepath: str | Path,
) -> Path:
    """Convenience function to export data to CSV."""
    return DataExporter(data_points).to_csv(filepath)
