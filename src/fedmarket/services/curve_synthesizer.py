"""Synthetic training runs: parameter estimation and an exponential-decay learning curve.

Nothing is actually trained. The structural numbers (parameter count, layer
count, input/output shapes) are a pure function of the configuration, while the
per-epoch metric history is drawn from a seedable ``numpy.random.Generator`` so
that tests can pin the curve and production keeps run-to-run variation.
"""

from __future__ import annotations

import asyncio
import math
import time
import uuid
from dataclasses import dataclass, field

import numpy as np
import structlog

from fedmarket.config import settings
from fedmarket.errors import UnsupportedConfigError, ValidationError
from fedmarket.observability.metrics import CURVE_SYNTHESES_TOTAL

logger = structlog.get_logger()

TASK_TYPES = ("classification", "regression", "sentiment")

# Dense topology: input -> 128 -> 64 -> output
HIDDEN_UNITS = (128, 64)
NUM_LAYERS = 4

INITIAL_LOSS = 2.5
INITIAL_ACCURACY = 0.1
MIN_LOSS = 0.01
MAX_ACCURACY = 0.99
MIN_REGRESSION_METRIC = 0.7
DECAY_RATE = 0.02


@dataclass
class Hyperparameters:
    learning_rate: float = 0.001
    batch_size: int = 32
    epochs: int = 50
    dropout_rate: float = 0.2
    embedding_dim: int = 50


@dataclass
class DatasetShape:
    num_samples: int = 1000
    num_features: int = 10
    num_classes: int = 3
    vocab_size: int = 1000
    max_length: int = 50


def _positive(value) -> bool:
    return value > 0


def _unit_interval(value) -> bool:
    return 0 <= value < 1


def _epoch_count(value) -> bool:
    return 0 < value <= settings.synthesis_max_epochs


def _pick(section: dict, key: str, default, valid=None):
    value = section.get(key)
    if not value:
        return default
    if valid is not None and not valid(value):
        return default
    return value


@dataclass
class TrainingConfig:
    task_type: str = "classification"
    model_type: str = "dense"
    hyperparameters: Hyperparameters = field(default_factory=Hyperparameters)
    dataset: DatasetShape = field(default_factory=DatasetShape)

    @classmethod
    def from_request(cls, data: dict | None) -> TrainingConfig:
        """Build a config, replacing missing, zero or out-of-range values with defaults."""
        if not data:
            return cls()
        hp = data.get("hyperparameters") or {}
        ds = data.get("dataset") or {}
        hp_defaults = Hyperparameters()
        ds_defaults = DatasetShape()
        return cls(
            task_type=data.get("task_type") or "classification",
            model_type=data.get("model_type") or "dense",
            hyperparameters=Hyperparameters(
                learning_rate=_pick(hp, "learning_rate", hp_defaults.learning_rate, _positive),
                batch_size=_pick(hp, "batch_size", hp_defaults.batch_size, _positive),
                epochs=_pick(hp, "epochs", hp_defaults.epochs, _epoch_count),
                dropout_rate=_pick(
                    hp, "dropout_rate", hp_defaults.dropout_rate, _unit_interval
                ),
                embedding_dim=_pick(hp, "embedding_dim", hp_defaults.embedding_dim, _positive),
            ),
            dataset=DatasetShape(
                num_samples=_pick(ds, "num_samples", ds_defaults.num_samples, _positive),
                num_features=_pick(ds, "num_features", ds_defaults.num_features, _positive),
                num_classes=_pick(ds, "num_classes", ds_defaults.num_classes, _positive),
                vocab_size=_pick(ds, "vocab_size", ds_defaults.vocab_size, _positive),
                max_length=_pick(ds, "max_length", ds_defaults.max_length, _positive),
            ),
        )


@dataclass(frozen=True)
class ModelShape:
    total_params: int
    layers: int
    input_shape: tuple[int, ...]
    output_shape: tuple[int, ...]


@dataclass
class EpochMetrics:
    epoch: int
    loss: float
    val_loss: float
    time: float
    accuracy: float | None = None
    val_accuracy: float | None = None
    mae: float | None = None
    val_mae: float | None = None


@dataclass
class ModelSummary:
    architecture: str
    task_type: str
    total_params: int
    input_shape: list[int]
    output_shape: list[int]
    layers: int
    final_accuracy: float
    final_loss: float
    training_time: float
    epochs_trained: int


@dataclass
class TrainingResult:
    model_id: str
    model_summary: ModelSummary
    training_history: list[EpochMetrics]
    message: str = "Model trained successfully"


def validate_task_type(task_type: str) -> None:
    if task_type not in TASK_TYPES:
        raise UnsupportedConfigError(
            "Invalid task type. Use: classification, regression, or sentiment"
        )


def estimate_parameters(config: TrainingConfig) -> ModelShape:
    ds = config.dataset
    if config.task_type == "sentiment":
        input_size = ds.vocab_size * config.hyperparameters.embedding_dim
        input_shape = (ds.max_length,)
    else:
        input_size = ds.num_features
        input_shape = (ds.num_features,)
    output_size = ds.num_classes if config.task_type == "classification" else 1

    params = 0
    fan_in = input_size
    for units in HIDDEN_UNITS:
        params += fan_in * units + units
        fan_in = units
    params += fan_in * output_size + output_size

    return ModelShape(
        total_params=int(params),
        layers=NUM_LAYERS,
        input_shape=input_shape,
        output_shape=(output_size,),
    )


def generate_history(config: TrainingConfig, rng: np.random.Generator) -> list[EpochMetrics]:
    learning_rate = config.hyperparameters.learning_rate
    regression = config.task_type == "regression"
    loss = INITIAL_LOSS
    accuracy = INITIAL_ACCURACY
    history = []

    for epoch in range(1, config.hyperparameters.epochs + 1):
        decay = math.exp(-epoch * DECAY_RATE)
        loss = max(MIN_LOSS, loss - learning_rate * decay * 0.5 + float(rng.uniform(-0.01, 0.01)))
        if regression:
            accuracy = max(
                MIN_REGRESSION_METRIC,
                accuracy + learning_rate * decay * 2 + float(rng.uniform(-0.005, 0.005)),
            )
        else:
            accuracy = min(
                MAX_ACCURACY,
                accuracy + learning_rate * decay * 3 + float(rng.uniform(-0.01, 0.01)),
            )

        val_loss = loss + float(rng.uniform(0, 0.1))
        val_accuracy = max(0.0, accuracy - float(rng.uniform(0, 0.05)))
        epoch_time = float(rng.uniform(100, 300))

        metrics = EpochMetrics(epoch=epoch, loss=loss, val_loss=val_loss, time=epoch_time)
        if regression:
            metrics.mae = accuracy
            metrics.val_mae = val_accuracy
        else:
            metrics.accuracy = accuracy
            metrics.val_accuracy = val_accuracy
        history.append(metrics)

    return history


def _final_accuracy(last: EpochMetrics) -> float:
    for value in (last.val_accuracy, last.accuracy, last.val_mae, last.mae):
        if value is not None:
            return value
    return 0.0


def synthesize(config: TrainingConfig, rng: np.random.Generator | None = None) -> TrainingResult:
    validate_task_type(config.task_type)
    if rng is None:
        rng = np.random.default_rng()

    start = time.perf_counter()
    shape = estimate_parameters(config)
    history = generate_history(config, rng)
    elapsed_ms = (time.perf_counter() - start) * 1000

    last = history[-1]
    summary = ModelSummary(
        architecture=config.model_type,
        task_type=config.task_type,
        total_params=shape.total_params,
        input_shape=list(shape.input_shape),
        output_shape=list(shape.output_shape),
        layers=shape.layers,
        final_accuracy=_final_accuracy(last),
        final_loss=last.val_loss,
        training_time=elapsed_ms,
        epochs_trained=config.hyperparameters.epochs,
    )
    return TrainingResult(
        model_id=f"model_{uuid.uuid4().hex[:16]}",
        model_summary=summary,
        training_history=history,
    )


def synthesis_delay(config: TrainingConfig) -> float:
    return min(
        config.hyperparameters.epochs * settings.synthesis_epoch_delay_seconds,
        settings.synthesis_max_delay_seconds,
    )


async def run_synthesis(
    config: TrainingConfig, rng: np.random.Generator | None = None
) -> TrainingResult:
    validate_task_type(config.task_type)
    if not _epoch_count(config.hyperparameters.epochs):
        raise ValidationError(
            f"epochs must be between 1 and {settings.synthesis_max_epochs}"
        )
    logger.info(
        "curve_synthesis_starting",
        task_type=config.task_type,
        model_type=config.model_type,
        epochs=config.hyperparameters.epochs,
    )

    delay = synthesis_delay(config)
    if delay > 0:
        await asyncio.sleep(delay)

    # the epoch loop is CPU-bound; keep it off the event loop
    result = await asyncio.to_thread(synthesize, config, rng)
    CURVE_SYNTHESES_TOTAL.labels(task_type=config.task_type).inc()
    logger.info(
        "curve_synthesized",
        model_id=result.model_id,
        total_params=result.model_summary.total_params,
        final_accuracy=round(result.model_summary.final_accuracy, 4),
    )
    return result


def training_catalog() -> dict:
    return {
        "available_tasks": list(TASK_TYPES),
        "available_models": {
            "classification": ["dense", "cnn", "rnn"],
            "regression": ["dense", "polynomial"],
            "sentiment": ["lstm", "transformer", "cnn"],
        },
        "default_configs": {
            "classification": {
                "epochs": 50,
                "batch_size": 32,
                "validation_split": 0.2,
                "optimizer": "adam",
                "loss": "categoricalCrossentropy",
                "metrics": ["accuracy"],
            },
            "regression": {
                "epochs": 100,
                "batch_size": 32,
                "validation_split": 0.2,
                "optimizer": "adam",
                "loss": "meanSquaredError",
                "metrics": ["mae"],
            },
            "sentiment": {
                "epochs": 30,
                "batch_size": 32,
                "validation_split": 0.2,
                "optimizer": "adam",
                "loss": "binaryCrossentropy",
                "metrics": ["accuracy"],
            },
        },
        "hyperparameters": {
            "learning_rate": [0.0001, 0.001, 0.01, 0.1],
            "batch_size": [16, 32, 64, 128],
            "epochs": [10, 25, 50, 100],
            "dropout_rate": [0.1, 0.2, 0.3, 0.5],
        },
    }
