"""
Tests for the labeled dataset and value conversion helpers.
"""

import math

import numpy as np
import pandas as pd
import pytest

from src.data.core.dataset import (
    ColumnType,
    Dataset,
    Record,
    infer_column_type,
    to_number
)


class TestToNumber:
    """Test lenient value-to-number conversion."""

    @pytest.mark.parametrize("value,expected", [
        (1, 1.0),
        (0, 0.0),
        (2.5, 2.5),
        (True, 1.0),
        (False, 0.0),
        ("3", 3.0),
        (" 1.5 ", 1.5),
        (np.int64(4), 4.0),
        (np.bool_(True), 1.0),
    ])
    def test_convertible_values(self, value, expected):
        assert to_number(value) == expected

    @pytest.mark.parametrize("value", [None, "abc", "", float('nan'), object(), [1, 2]])
    def test_unconvertible_values(self, value):
        assert to_number(value) is None


class TestInferColumnType:
    """Test column type inference from sample values."""

    def test_inference(self):
        assert infer_column_type(True) == ColumnType.DUMMY
        assert infer_column_type(3) == ColumnType.NUMERICAL
        assert infer_column_type(0.5) == ColumnType.NUMERICAL
        assert infer_column_type("red") == ColumnType.CATEGORICAL


class TestDataset:
    """Test dataset container behavior."""

    def test_add_assigns_sequential_ids(self):
        dataset = Dataset()
        first = dataset.add(Record('x', {'f': 1}))
        second = dataset.add(Record('y', {'g': 2}))

        assert (first, second) == (0, 1)
        assert len(dataset) == 2
        assert list(dataset) == [0, 1]
        assert dataset.get(1).label == 'y'

    def test_undeclared_features_get_inferred_types(self):
        dataset = Dataset(column_types={'f': ColumnType.CATEGORICAL})
        dataset.add(Record('x', {'f': 1, 'g': 2.0, 'h': 'red', 'k': True}))

        assert dataset.column_type('f') == ColumnType.CATEGORICAL
        assert dataset.column_type('g') == ColumnType.NUMERICAL
        assert dataset.column_type('h') == ColumnType.CATEGORICAL
        assert dataset.column_type('k') == ColumnType.DUMMY

    def test_every_record_feature_is_in_metadata(self, mixed_dataset):
        columns = mixed_dataset.columns
        for _, record in mixed_dataset.items():
            assert set(record.features) <= set(columns)

    def test_remove_columns(self, binary_dataset):
        binary_dataset.remove_columns({'b', 'c'})

        assert set(binary_dataset.columns) == {'a'}
        for _, record in binary_dataset.items():
            assert set(record.features) == {'a'}

    def test_remove_unknown_columns_is_harmless(self, binary_dataset):
        binary_dataset.remove_columns({'missing'})
        assert set(binary_dataset.columns) == {'a', 'b', 'c'}

    def test_columns_returns_copy(self, binary_dataset):
        columns = binary_dataset.columns
        columns.pop('a')
        assert 'a' in binary_dataset.columns

    def test_copy_is_independent(self, binary_dataset):
        clone = binary_dataset.copy()
        clone.remove_columns({'a'})

        assert 'a' in binary_dataset.columns
        assert 'a' in binary_dataset.get(0).features
        assert len(clone) == len(binary_dataset)


class TestDataFrameConversion:
    """Test conversion between datasets and pandas DataFrames."""

    @pytest.fixture
    def frame(self):
        return pd.DataFrame({
            'a': [1, 0, 1],
            'b': ['x', 'y', None],
            'num': [1.5, 2.0, 3.0],
            'flag': [True, False, True],
            'y': ['p', 'n', 'p']
        })

    def test_from_dataframe_types(self, frame):
        dataset = Dataset.from_dataframe(frame, target='y')

        assert len(dataset) == 3
        assert dataset.column_type('a') == ColumnType.NUMERICAL
        assert dataset.column_type('b') == ColumnType.CATEGORICAL
        assert dataset.column_type('num') == ColumnType.NUMERICAL
        assert dataset.column_type('flag') == ColumnType.DUMMY
        assert 'y' not in dataset.columns

    def test_from_dataframe_explicit_types(self, frame):
        dataset = Dataset.from_dataframe(frame, target='y', column_types={'a': ColumnType.DUMMY})
        assert dataset.column_type('a') == ColumnType.DUMMY

    def test_from_dataframe_missing_cells_are_absent(self, frame):
        dataset = Dataset.from_dataframe(frame, target='y')

        assert dataset.get(0).label == 'p'
        assert dataset.get(0).features['b'] == 'x'
        assert 'b' not in dataset.get(2).features

    def test_from_dataframe_requires_target(self, frame):
        with pytest.raises(ValueError, match="Target column 'label' not found"):
            Dataset.from_dataframe(frame, target='label')

    def test_to_dataframe(self, binary_dataset):
        binary_dataset.remove_columns({'c'})
        df = binary_dataset.to_dataframe(target='y')

        assert list(df.columns) == ['a', 'b', 'y']
        assert df['y'].tolist() == ['pos', 'pos', 'neg', 'neg']
        assert df['a'].tolist() == [1, 1, 1, 0]

    def test_to_dataframe_fills_absent_features(self):
        dataset = Dataset([Record('x', {'f': 1}), Record('y', {'g': 1})])
        df = dataset.to_dataframe()

        assert math.isnan(df.loc[1, 'f'])
        assert df.loc[0, 'label'] == 'x'
