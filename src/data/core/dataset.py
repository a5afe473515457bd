"""
Labeled record collections for categorical feature selection.

This module provides the in-memory dataset the selection engine counts over:
records with a label and a sparse feature mapping, plus per-column type
metadata that tells the engine which columns are numerical.

Key Features:
- Column-type metadata kept consistent with record contents
- Bulk column removal across metadata and every record
- Lenient value-to-number conversion for sparse presence semantics
- Conversion to and from pandas DataFrames
"""

import logging
import math
import numbers
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, Optional, Tuple

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


class ColumnType(Enum):
    """Types of dataset columns."""
    NUMERICAL = "numerical"
    CATEGORICAL = "categorical"
    ORDINAL = "ordinal"
    DUMMY = "dummy"  # 0/1 indicator columns


@dataclass
class Record:
    """A single labeled observation."""
    label: Any
    features: Dict[Any, Any] = field(default_factory=dict)


def infer_column_type(value: Any) -> ColumnType:
    """Infer the column type of a feature from one of its values."""
    if isinstance(value, (bool, np.bool_)):
        return ColumnType.DUMMY
    if isinstance(value, numbers.Number):
        return ColumnType.NUMERICAL
    return ColumnType.CATEGORICAL


def to_number(value: Any) -> Optional[float]:
    """
    Convert a feature value to a float.

    Returns None when the value cannot be interpreted as a number, including
    None and NaN. Booleans map to 1.0/0.0 and numeric strings are parsed.
    """
    if value is None:
        return None
    if isinstance(value, (bool, np.bool_)):
        return 1.0 if value else 0.0
    try:
        number = float(value.strip()) if isinstance(value, str) else float(value)
    except (ValueError, TypeError):
        return None
    if math.isnan(number):
        return None
    return number


class Dataset:
    """
    Collection of labeled records with column-type metadata.

    Record ids are assigned sequentially on insertion. Every feature-id that
    appears in a record is guaranteed to exist in the column metadata.
    """

    def __init__(
        self,
        records: Optional[Iterable[Record]] = None,
        column_types: Optional[Dict[Any, ColumnType]] = None
    ):
        """
        Initialize dataset.

        Args:
            records: Records to add
            column_types: Declared column types; undeclared features are inferred
        """
        self._records: Dict[int, Record] = {}
        self._columns: Dict[Any, ColumnType] = dict(column_types or {})
        self._next_id = 0

        for record in records or []:
            self.add(record)

    def add(self, record: Record) -> int:
        """Add a record and return its id."""
        for feature, value in record.features.items():
            if feature not in self._columns:
                self._columns[feature] = infer_column_type(value)

        record_id = self._next_id
        self._records[record_id] = record
        self._next_id += 1
        return record_id

    def get(self, record_id: int) -> Record:
        return self._records[record_id]

    def items(self) -> Iterator[Tuple[int, Record]]:
        """Iterate over (record_id, record) pairs."""
        return iter(list(self._records.items()))

    def __iter__(self) -> Iterator[int]:
        return iter(list(self._records))

    def __len__(self) -> int:
        return len(self._records)

    @property
    def columns(self) -> Dict[Any, ColumnType]:
        """Copy of the column metadata."""
        return dict(self._columns)

    def column_type(self, feature: Any) -> Optional[ColumnType]:
        return self._columns.get(feature)

    def set_column_type(self, feature: Any, column_type: ColumnType) -> None:
        self._columns[feature] = column_type

    def remove_columns(self, features: Iterable[Any]) -> None:
        """Remove columns from the metadata and from every record."""
        to_remove = set(features)
        if not to_remove:
            return

        for feature in to_remove:
            self._columns.pop(feature, None)

        for record in self._records.values():
            for feature in to_remove:
                record.features.pop(feature, None)

        logger.debug(f"Removed {len(to_remove)} columns from dataset")

    def copy(self) -> 'Dataset':
        """Deep enough copy to allow independent column removal."""
        return Dataset(
            records=[Record(r.label, dict(r.features)) for r in self._records.values()],
            column_types=self._columns
        )

    @classmethod
    def from_dataframe(
        cls,
        df: pd.DataFrame,
        target: str,
        column_types: Optional[Dict[Any, ColumnType]] = None
    ) -> 'Dataset':
        """
        Build a dataset from a DataFrame.

        Args:
            df: Input frame, one row per record
            target: Name of the label column
            column_types: Explicit types; other columns are typed from their dtype
        """
        if target not in df.columns:
            raise ValueError(f"Target column '{target}' not found in DataFrame")

        declared = dict(column_types or {})
        feature_columns = [c for c in df.columns if c != target]

        for column in feature_columns:
            if column in declared:
                continue
            dtype = df[column].dtype
            if pd.api.types.is_bool_dtype(dtype):
                declared[column] = ColumnType.DUMMY
            elif pd.api.types.is_numeric_dtype(dtype):
                declared[column] = ColumnType.NUMERICAL
            else:
                declared[column] = ColumnType.CATEGORICAL

        dataset = cls(column_types=declared)
        for row in df.itertuples(index=False, name=None):
            values = dict(zip(df.columns, row))
            label = values.pop(target)
            # Missing cells are absent features
            features = {
                k: v for k, v in values.items()
                if not (pd.api.types.is_scalar(v) and pd.isna(v))
            }
            dataset.add(Record(label, features))

        logger.info(f"Dataset built from DataFrame: {len(dataset)} records, {len(declared)} columns")
        return dataset

    def to_dataframe(self, target: str = 'label') -> pd.DataFrame:
        """Convert to a DataFrame; features absent from a record become NaN."""
        rows = []
        for _, record in self.items():
            row = dict(record.features)
            row[target] = record.label
            rows.append(row)

        columns = list(self._columns) + [target]
        return pd.DataFrame(rows, columns=columns)
