"""Central MLflow setup for DSPy tracing."""

import logging
from typing import Optional

import mlflow

from costpool.config import get_config

logger = logging.getLogger(__name__)

# Track if autolog has been initialized
_autolog_initialized = False


def setup_mlflow_tracing(experiment_name: Optional[str] = None) -> bool:
    """
    Set up MLflow tracing for DSPy LM calls.

    Safe to call repeatedly; autolog is enabled once per process. Does
    nothing when MLFLOW_ENABLED is false.

    Args:
        experiment_name: Name of the MLflow experiment. If None, uses config default.

    Returns:
        True if tracing is active
    """
    global _autolog_initialized

    config = get_config()
    if not config.mlflow.enabled:
        return False

    if config.mlflow.tracking_uri:
        mlflow.set_tracking_uri(config.mlflow.tracking_uri)

    mlflow.set_experiment(experiment_name or config.mlflow.experiment_name)

    if not _autolog_initialized:
        mlflow.dspy.autolog()
        _autolog_initialized = True
        logger.info("MLflow DSPy autolog enabled")

    return True
