"""
Parameters and context for categorical feature selection.

Training parameters are supplied before fitting and never change during a fit.
Model parameters are the fit result. Both travel together with the key-value
store in an explicit FeatureSelectionContext handed to the engine.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from src.data.core.storage import KeyValueStore, InMemoryKeyValueStore


@dataclass(frozen=True)
class TrainingParameters:
    """Configuration for categorical feature selection."""

    # Features with count <= threshold are dropped before scoring; None disables pruning
    rare_feature_threshold: Optional[int] = None

    # Advisory cap consumed by scorers only
    max_features: Optional[int] = None

    # Numerical columns bypass counting, pruning and filtering
    ignoring_numerical_features: bool = True

    def __post_init__(self):
        if self.rare_feature_threshold is not None and self.rare_feature_threshold < 0:
            raise ValueError(f"rare_feature_threshold must be non-negative: {self.rare_feature_threshold}")
        if self.max_features is not None and self.max_features <= 0:
            raise ValueError(f"max_features must be positive: {self.max_features}")

    @property
    def pruning_enabled(self) -> bool:
        return self.rare_feature_threshold is not None and self.rare_feature_threshold > 0


@dataclass(frozen=True)
class ModelParameters:
    """Result of a fit: observation count and per-feature scores."""

    n_observations: int
    feature_scores: Mapping[Any, float] = field(default_factory=dict)

    def __post_init__(self):
        # read-only view over a private copy
        object.__setattr__(self, 'feature_scores', MappingProxyType(dict(self.feature_scores)))

    @property
    def selected_features(self):
        return list(self.feature_scores)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'n_observations': self.n_observations,
            'feature_scores': [[feature, score] for feature, score in self.feature_scores.items()]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ModelParameters':
        scores = data.get('feature_scores', [])
        if isinstance(scores, dict):
            scores = scores.items()
        return cls(
            n_observations=int(data['n_observations']),
            feature_scores={_as_key(feature): float(score) for feature, score in scores}
        )


def _as_key(feature: Any) -> Any:
    return tuple(feature) if isinstance(feature, list) else feature


@dataclass
class FeatureSelectionContext:
    """
    Everything a fit or transform call operates on.

    The context is UNFIT while model_parameters is None. A successful fit
    replaces model_parameters wholesale.
    """

    training_parameters: TrainingParameters = field(default_factory=TrainingParameters)
    store: KeyValueStore = field(default_factory=InMemoryKeyValueStore)
    model_parameters: Optional[ModelParameters] = None

    @property
    def is_fitted(self) -> bool:
        return self.model_parameters is not None
