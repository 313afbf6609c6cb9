"""Configuration for config-driven cross-validation runs.

Example YAML::

    cv:
      k: 5
      shuffle: true
      random_state: 42
    model:
      name: logistic_regression
      params:
        C: 0.5
    metric:
      name: accuracy
    data:
      label_column: label
      weight_column: weight
      num_classes: 3
    log_level: INFO
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .harness import KFoldCV
from .metrics import get_metric
from .registry import get_estimator
from .trainers import EstimatorTrainer

logger = logging.getLogger(__name__)

LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


def _section(config: dict[str, Any], name: str) -> dict[str, Any]:
    """Return a top-level config section; a missing or empty section is `{}`."""
    section = config.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Config section '{name}' must be a mapping (got {type(section).__name__})")
    return section


@dataclass
class KFoldConfig:
    """Settings for one cross-validation run."""

    k: int = 5
    shuffle: bool = False
    random_state: int = 42
    model_name: str = "logistic_regression"
    model_params: dict[str, Any] = field(default_factory=dict)
    metric_name: str = "accuracy"
    label_column: str = "label"
    weight_column: str | None = None
    num_classes: int | None = None
    log_level: str = "INFO"

    def __post_init__(self):
        if not isinstance(self.k, int) or isinstance(self.k, bool) or self.k < 2:
            raise ValueError(f"cv.k must be an integer >= 2 (got {self.k!r})")
        if not isinstance(self.model_params, dict):
            raise ValueError(f"model.params must be a mapping (got {type(self.model_params).__name__})")
        if not isinstance(self.shuffle, bool):
            raise ValueError(f"cv.shuffle must be true or false (got {self.shuffle!r})")
        if self.num_classes is not None and (
            not isinstance(self.num_classes, int)
            or isinstance(self.num_classes, bool)
            or self.num_classes < 1
        ):
            raise ValueError(f"data.num_classes must be an integer >= 1 (got {self.num_classes!r})")
        if str(self.log_level).upper() not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(LOG_LEVELS)} (got {self.log_level!r})")

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "KFoldConfig":
        """Create a config from the nested dictionary layout of the YAML file."""
        cv_config = _section(config, "cv")
        model_config = _section(config, "model")
        metric_config = _section(config, "metric")
        data_config = _section(config, "data")

        return cls(
            k=cv_config.get("k", 5),
            shuffle=cv_config.get("shuffle", False),
            random_state=cv_config.get("random_state", 42),
            model_name=model_config.get("name", "logistic_regression"),
            model_params=model_config.get("params", {}) or {},
            metric_name=metric_config.get("name", "accuracy"),
            label_column=data_config.get("label_column", "label"),
            weight_column=data_config.get("weight_column"),
            num_classes=data_config.get("num_classes"),
            log_level=config.get("log_level", "INFO"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "cv": {"k": self.k, "shuffle": self.shuffle, "random_state": self.random_state},
            "model": {"name": self.model_name, "params": dict(self.model_params)},
            "metric": {"name": self.metric_name},
            "data": {
                "label_column": self.label_column,
                "weight_column": self.weight_column,
                "num_classes": self.num_classes,
            },
            "log_level": self.log_level,
        }


def load_config(path: str | Path) -> KFoldConfig:
    """Load a KFoldConfig from a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the YAML top level is not a mapping or values are invalid
    """
    with open(path) as f:
        raw_config = yaml.safe_load(f) or {}
    if not isinstance(raw_config, dict):
        raise ValueError(f"Config file {path} must contain a mapping at the top level")
    return KFoldConfig.from_dict(raw_config)


def create_kfold_from_config(
    config: KFoldConfig,
    xs: Any,
    ys: Any,
    weights: Any | None = None,
) -> KFoldCV:
    """Create a harness from configuration and data."""
    estimator = get_estimator(config.model_name, **config.model_params)
    metric = get_metric(config.metric_name)

    logger.info(
        f"Creating KFoldCV from config: k={config.k}, model={config.model_name}, "
        f"metric={config.metric_name}, weighted={weights is not None}"
    )
    return KFoldCV(
        EstimatorTrainer(estimator),
        metric,
        config.k,
        xs,
        ys,
        num_classes=config.num_classes,
        weights=weights,
    )
