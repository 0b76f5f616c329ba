"""MLflow tracing setup for the resolver, fan-out and lookup spans."""

import logging

import mlflow

logger = logging.getLogger(__name__)


def configure_tracing(enabled: bool, tracking_uri: str, experiment_name: str) -> None:
    """Point MLflow at the tracking server, or switch tracing off entirely."""
    if not enabled:
        mlflow.tracing.disable()
        logger.info("MLflow tracing disabled")
        return

    mlflow.set_tracking_uri(tracking_uri)
    mlflow.set_experiment(experiment_name)
    mlflow.config.enable_async_logging()
    mlflow.tracing.enable()
    logger.info("MLflow tracing enabled: %s", tracking_uri)
