"""
Run k-fold cross-validation on a CSV dataset.

Rows are samples. The label column (and optional weight column) named in the
config are split off; every remaining column is a feature.

CLI: python -m src.kfold_cv.run_cv --config configs/kfold.yaml --data data/train.csv [--debug]
"""

import argparse
import sys

import pandas as pd
import yaml

from src.utils.logging import bind_run_fields, get_logger, setup_logging

from .config import KFoldConfig, create_kfold_from_config, load_config

logger = get_logger(__name__)


def load_dataset(
    path: str, config: KFoldConfig
) -> tuple[pd.DataFrame, pd.Series, pd.Series | None]:
    """Read a CSV and split it into features, labels and optional weights.

    Raises:
        KeyError: If the label or weight column is missing
        ValueError: If no feature columns remain
    """
    df = pd.read_csv(path)

    if config.label_column not in df.columns:
        raise KeyError(
            f"Label column '{config.label_column}' not found. Columns: {list(df.columns)}"
        )
    if config.weight_column is not None and config.weight_column not in df.columns:
        raise KeyError(
            f"Weight column '{config.weight_column}' not found. Columns: {list(df.columns)}"
        )

    if config.shuffle:
        df = df.sample(frac=1.0, random_state=config.random_state).reset_index(drop=True)

    drop_columns = [config.label_column]
    weights = None
    if config.weight_column is not None:
        weights = df[config.weight_column]
        drop_columns.append(config.weight_column)

    features = df.drop(columns=drop_columns)
    if features.shape[1] == 0:
        raise ValueError("Dataset has no feature columns besides label/weight")

    return features, df[config.label_column], weights


def main(argv: list[str] | None = None) -> int:
    """Main entry point for a cross-validation run."""
    parser = argparse.ArgumentParser(description="Run k-fold cross-validation on a CSV dataset")
    parser.add_argument("--config", required=True, help="Path to cross-validation config YAML")
    parser.add_argument("--data", required=True, help="Path to CSV dataset")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except (OSError, ValueError, yaml.YAMLError) as e:
        setup_logging(level="DEBUG" if args.debug else "INFO")
        logger.error(f"Failed to load config {args.config}: {e}")
        return 1

    setup_logging(
        level="DEBUG" if args.debug else config.log_level,
        config=config.to_dict(),
        global_seed=config.random_state,
        k=config.k,
    )
    logger.info("Starting cross-validation run", extra={"config_path": args.config})

    try:
        features, labels, weights = load_dataset(args.data, config)
        bind_run_fields(n_samples=len(labels))
        cv = create_kfold_from_config(config, features, labels, weights)
        mean_score = cv.evaluate()
    except (KeyError, ValueError, TypeError, OSError) as e:
        logger.error(f"Cross-validation run failed: {e}", exc_info=True)
        return 1

    logger.info(
        "Cross-validation complete",
        extra={
            "mean_score": mean_score,
            "metric": config.metric_name,
            "fold_scores": cv.fold_scores,
            **cv.summary(),
        },
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
