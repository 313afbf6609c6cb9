"""Estimator Registry for config-driven cross-validation runs.

Maps estimator names to scikit-learn estimator classes and their default
hyperparameters.

Provides:
- get_estimator(name, **overrides) -> fresh unfitted estimator
- list_available_estimators() -> list of estimator names

Raises:
- KeyError: Unknown estimator name
- ValueError: Unknown hyperparameter override
"""

import copy
import logging
from typing import Any

from sklearn.base import BaseEstimator
from sklearn.ensemble import RandomForestClassifier, RandomForestRegressor
from sklearn.linear_model import LinearRegression, LogisticRegression, Ridge
from sklearn.tree import DecisionTreeClassifier, DecisionTreeRegressor

logger = logging.getLogger(__name__)

DEFAULT_RANDOM_STATE = 42

_ESTIMATOR_REGISTRY: dict[str, dict[str, Any]] = {
    "ridge": {
        "estimator_class": Ridge,
        "params": {"alpha": 1.0},
    },
    "linear_regression": {
        "estimator_class": LinearRegression,
        "params": {},
    },
    "logistic_regression": {
        "estimator_class": LogisticRegression,
        "params": {"C": 1.0, "max_iter": 1000},
    },
    "decision_tree_classifier": {
        "estimator_class": DecisionTreeClassifier,
        "params": {"random_state": DEFAULT_RANDOM_STATE},
    },
    "decision_tree_regressor": {
        "estimator_class": DecisionTreeRegressor,
        "params": {"random_state": DEFAULT_RANDOM_STATE},
    },
    "random_forest_classifier": {
        "estimator_class": RandomForestClassifier,
        "params": {"n_estimators": 100, "random_state": DEFAULT_RANDOM_STATE},
    },
    "random_forest_regressor": {
        "estimator_class": RandomForestRegressor,
        "params": {"n_estimators": 100, "random_state": DEFAULT_RANDOM_STATE},
    },
}


def get_estimator(name: str, **overrides: Any) -> BaseEstimator:
    """Build a fresh, unfitted estimator for a registered name.

    Args:
        name: Registered estimator name
        **overrides: Hyperparameters replacing the registered defaults

    Returns:
        Unfitted scikit-learn estimator

    Raises:
        KeyError: If name is not registered
        ValueError: If an override is not a hyperparameter of the estimator

    Example:
        >>> est = get_estimator("ridge", alpha=3.0)
        >>> est.get_params()["alpha"]
        3.0
    """
    if name not in _ESTIMATOR_REGISTRY:
        available = sorted(_ESTIMATOR_REGISTRY.keys())
        raise KeyError(f"Unknown estimator name '{name}'. Available estimators: {available}")

    entry = _ESTIMATOR_REGISTRY[name]
    estimator_class = entry["estimator_class"]

    # Deep copy defaults to prevent mutation of the registry
    params = copy.deepcopy(entry["params"])
    params.update(overrides)

    valid_params = set(estimator_class().get_params().keys())
    unknown = set(params) - valid_params
    if unknown:
        raise ValueError(
            f"Unknown hyperparameter(s) for '{name}': {sorted(unknown)}. "
            f"Valid hyperparameters: {sorted(valid_params)}"
        )

    logger.debug(f"Built estimator '{name}' with params {params}")
    return estimator_class(**params)


def list_available_estimators() -> list[str]:
    return sorted(_ESTIMATOR_REGISTRY.keys())
