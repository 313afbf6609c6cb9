"""K-fold cross-validation package exports."""

from .geometry import FoldGeometry, compute_fold_geometry
from .harness import KFoldCV, RunState
from .metrics import Metric, PredictionMetric, get_metric, list_available_metrics
from .model_holder import ModelHolder, ModelNotInitializedError
from .trainers import EstimatorTrainer, ModelTrainer
from .validation import DatasetConsistencyError, DatasetInfo
from .windows import ContiguousKFold, FoldWindows, Window

__all__ = [
    "ContiguousKFold",
    "DatasetConsistencyError",
    "DatasetInfo",
    "EstimatorTrainer",
    "FoldGeometry",
    "FoldWindows",
    "KFoldCV",
    "Metric",
    "ModelHolder",
    "ModelNotInitializedError",
    "ModelTrainer",
    "PredictionMetric",
    "RunState",
    "Window",
    "compute_fold_geometry",
    "get_metric",
    "list_available_metrics",
]
