from pydantic import BaseModel


class HyperparametersSchema(BaseModel):
    learning_rate: float | None = None
    batch_size: int | None = None
    epochs: int | None = None
    dropout_rate: float | None = None
    embedding_dim: int | None = None


class DatasetShapeSchema(BaseModel):
    num_samples: int | None = None
    num_features: int | None = None
    num_classes: int | None = None
    vocab_size: int | None = None
    max_length: int | None = None


class TrainingConfigRequest(BaseModel):
    model_config = {"protected_namespaces": ()}

    task_type: str | None = None
    model_type: str | None = None
    hyperparameters: HyperparametersSchema | None = None
    dataset: DatasetShapeSchema | None = None


class EpochMetricsResponse(BaseModel):
    model_config = {"from_attributes": True}

    epoch: int
    loss: float
    val_loss: float
    time: float
    accuracy: float | None = None
    val_accuracy: float | None = None
    mae: float | None = None
    val_mae: float | None = None


class ModelSummaryResponse(BaseModel):
    model_config = {"from_attributes": True}

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


class TrainingResultResponse(BaseModel):
    model_config = {"from_attributes": True, "protected_namespaces": ()}

    success: bool = True
    model_id: str
    model_summary: ModelSummaryResponse
    training_history: list[EpochMetricsResponse]
    message: str
