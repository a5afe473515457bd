#!/usr/bin/env python3
"""
Demo script for categorical feature selection.

Builds a small bag-of-words sentiment dataset, prunes rare words, selects
informative words with chi-square and mutual information, and filters an
unseen dataset down to the selected vocabulary.

Set CATFS_STORAGE_BACKEND=redis to keep the statistics in Redis.
"""

import logging

import numpy as np
import pandas as pd

from src.data.core.dataset import ColumnType, Dataset
from src.data.core.storage import StorageConfig, create_store
from src.feature_selection.categorical import (
    CategoricalSelectionEngine,
    ChiSquareScorer,
    FeatureSelectionContext,
    MutualInformationScorer,
    TrainingParameters
)

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

POSITIVE_WORDS = ['great', 'excellent', 'love', 'happy']
NEGATIVE_WORDS = ['awful', 'terrible', 'hate', 'broken']
NEUTRAL_WORDS = ['the', 'product', 'delivery', 'box', 'color']


def generate_reviews(n_samples: int, seed: int) -> pd.DataFrame:
    """Generate binary word-presence rows with a sentiment label."""
    rng = np.random.default_rng(seed)
    rows = []

    for _ in range(n_samples):
        sentiment = rng.choice(['pos', 'neg'])
        row = {}
        for word in POSITIVE_WORDS:
            row[word] = int(rng.random() < (0.6 if sentiment == 'pos' else 0.05))
        for word in NEGATIVE_WORDS:
            row[word] = int(rng.random() < (0.6 if sentiment == 'neg' else 0.05))
        for word in NEUTRAL_WORDS:
            row[word] = int(rng.random() < 0.5)
        # A handful of typos that appear once or twice
        row[f'typo_{rng.integers(0, 200)}'] = 1
        row['review_length'] = float(rng.integers(5, 400))
        row['sentiment'] = sentiment
        rows.append(row)

    return pd.DataFrame(rows).fillna(0)


def to_dataset(df: pd.DataFrame) -> Dataset:
    column_types = {
        c: ColumnType.DUMMY for c in df.columns if c not in ('sentiment', 'review_length')
    }
    column_types['review_length'] = ColumnType.NUMERICAL
    return Dataset.from_dataframe(df, target='sentiment', column_types=column_types)


def main():
    print("Categorical Feature Selection Demo")
    print("=" * 50)

    store = create_store(StorageConfig.from_env())
    training_parameters = TrainingParameters(rare_feature_threshold=3, max_features=6)

    for scorer in (ChiSquareScorer(alpha=0.01), MutualInformationScorer()):
        train = to_dataset(generate_reviews(500, seed=1))
        unseen = to_dataset(generate_reviews(100, seed=2))

        context = FeatureSelectionContext(training_parameters=training_parameters, store=store)
        engine = CategoricalSelectionEngine(scorer)

        print(f"\n{scorer.name}: {len(train.columns)} columns before selection")
        engine.fit_transform(train, context)
        engine.transform(unseen, context)

        summary = engine.get_selection_summary(context)
        for feature, score in summary['ranked_features']:
            print(f"  {feature:<12} {score:.4f}")
        print(f"Unseen data keeps columns: {sorted(unseen.columns)}")


if __name__ == "__main__":
    main()
