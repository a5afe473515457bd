"""
Categorical Feature Selection Module

This module implements contingency-table based feature selection for
categorical and sparse binary features. It counts class, feature and joint
feature/class occurrences in bounded memory, prunes rare features, and
delegates the actual relevance scoring to interchangeable scorers.

Key Components:
- Two-pass feature statistics builder with rare-feature pruning
- Dataset filter keeping only selected columns
- Chi-square, mutual information and frequency scorers
- Selection engine driving fit and transform over an explicit context
"""

from .parameters import TrainingParameters, ModelParameters, FeatureSelectionContext
from .statistics import (
    ContingencyCounts,
    FeatureStatisticsBuilder,
    NonEmptyCountsError,
    count_features,
    merge_counts,
    prune_rare_features,
    remove_rare_features
)
from .filtering import filter_dataset
from .scorers import (
    FeatureScorer,
    ChiSquareScorer,
    MutualInformationScorer,
    FrequencyScorer,
    create_scorer,
    select_top_features
)
from .engine import CategoricalSelectionEngine, NotFittedError

__all__ = [
    'TrainingParameters',
    'ModelParameters',
    'FeatureSelectionContext',
    'ContingencyCounts',
    'FeatureStatisticsBuilder',
    'NonEmptyCountsError',
    'count_features',
    'merge_counts',
    'prune_rare_features',
    'remove_rare_features',
    'filter_dataset',
    'FeatureScorer',
    'ChiSquareScorer',
    'MutualInformationScorer',
    'FrequencyScorer',
    'create_scorer',
    'select_top_features',
    'CategoricalSelectionEngine',
    'NotFittedError'
]

# Version info
__version__ = '1.0.0'
