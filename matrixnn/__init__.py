"""
Matrix Neural Network

A minimal feed-forward neural network trained by backpropagation, built on
a small dense 2-D matrix abstraction backed by NumPy.

Modules:
    matrix: Fixed-shape 2-D Matrix with the algebra primitives
    activations: Sigmoid activation and its derivative
    network: Multi-layer perceptron with predict() and train()
    utils: Saving/loading networks, datasets and a training loop
"""

from matrixnn.matrix import Matrix, ShapeMismatchError
from matrixnn.network import DimensionMismatchError, Network
from matrixnn.utils import (
    SerializationError,
    TrainingConfig,
    load_network,
    mean_squared_error,
    save_network,
    train_network,
    xor_dataset,
)

__version__ = "1.0.0"

__all__ = [
    "DimensionMismatchError",
    "Matrix",
    "Network",
    "SerializationError",
    "ShapeMismatchError",
    "TrainingConfig",
    "load_network",
    "mean_squared_error",
    "save_network",
    "train_network",
    "xor_dataset",
]
