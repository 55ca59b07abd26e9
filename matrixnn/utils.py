"""
Utility Functions for Training and Persistence

This module provides utility functions for:
- Saving and loading networks (.npz archives with an explicit schema)
- Toy datasets
- A simple per-sample training loop and loss evaluation

Classes:
    TrainingConfig: Hyperparameters for train_network()
    SerializationError: Raised when a network cannot be saved or loaded

Functions:
    save_network: Write a network to a path or binary stream
    load_network: Read a network from a path or binary stream
    xor_dataset: The four XOR input/target pairs
    mean_squared_error: Average squared error of a network over a dataset
    train_network: Train a network for a number of epochs
"""

import logging
import os
import zipfile
from dataclasses import dataclass
from typing import BinaryIO, List, Optional, Sequence, Tuple, Union

import numpy as np

from matrixnn.network import Network, check_vector_length

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1

Sample = Tuple[Sequence[float], Sequence[float]]
FileLike = Union[str, os.PathLike, BinaryIO]


class SerializationError(Exception):
    """Raised when a network cannot be written or read back."""


@dataclass
class TrainingConfig:
    """
    Configuration for train_network().

    Attributes:
        epochs: Number of passes over the dataset
        learning_rate: Learning rate set on the network before training
        shuffle: Whether to visit the samples in a random order each epoch
        seed: Seed for the shuffling generator
        log_every: Log the epoch loss every this many epochs (0 disables)
    """

    epochs: int = 5000
    learning_rate: float = 0.5
    shuffle: bool = True
    seed: Optional[int] = None
    log_every: int = 1000


def xor_dataset() -> List[Sample]:
    """Return the XOR truth table as (inputs, targets) pairs."""
    return [
        ([0.0, 0.0], [0.0]),
        ([0.0, 1.0], [1.0]),
        ([1.0, 0.0], [1.0]),
        ([1.0, 1.0], [0.0]),
    ]


def mean_squared_error(network: Network, dataset: Sequence[Sample]) -> float:
    """
    Compute the mean squared error of the network over a dataset.

    The mean is taken over every output value of every sample.

    Args:
        network: Network to evaluate (its output cache is overwritten)
        dataset: Sequence of (inputs, targets) pairs

    Returns:
        Mean squared error

    Raises:
        DimensionMismatchError: If a sample's inputs or targets have the
            wrong length
    """
    if len(dataset) == 0:
        raise ValueError("Cannot evaluate on an empty dataset")

    squared_errors = []
    for inputs, targets in dataset:
        check_vector_length("target", targets, network.layer_sizes[-1])
        predictions = np.asarray(network.predict(inputs))
        squared_errors.append((predictions - np.asarray(targets, dtype=np.float64)) ** 2)

    return float(np.mean(np.concatenate(squared_errors)))


def train_network(
    network: Network, dataset: Sequence[Sample], config: TrainingConfig
) -> List[float]:
    """
    Train a network one sample at a time for config.epochs epochs.

    Args:
        network: Network to train in place
        dataset: Sequence of (inputs, targets) pairs
        config: Training hyperparameters

    Returns:
        Mean squared error per epoch, measured during training (before each
        sample's update)
    """
    if len(dataset) == 0:
        raise ValueError("Cannot train on an empty dataset")

    network.set_learning_rate(config.learning_rate)
    rng = np.random.default_rng(config.seed)
    num_outputs = network.layer_sizes[-1]
    indices = np.arange(len(dataset))

    epoch_losses = []
    for epoch in range(1, config.epochs + 1):
        if config.shuffle:
            rng.shuffle(indices)

        total_error = 0.0
        for idx in indices:
            inputs, targets = dataset[idx]
            total_error += network.train(inputs, targets)

        epoch_loss = total_error / (len(dataset) * num_outputs)
        epoch_losses.append(epoch_loss)

        if config.log_every and epoch % config.log_every == 0:
            logger.info("Epoch %d/%d | loss %.6f", epoch, config.epochs, epoch_loss)

    return epoch_losses


def save_network(network: Network, file: FileLike) -> None:
    """
    Save a network to a .npz archive.

    The archive holds format_version, layer_sizes, learning_rate and one
    weight_{i} / bias_{i} array per layer transition. No pickled objects
    are written.

    Args:
        network: Network to save
        file: Path or writable binary stream

    Raises:
        SerializationError: If the archive cannot be written
    """
    save_dict = {
        "format_version": np.array([FORMAT_VERSION], dtype=np.int64),
        "layer_sizes": np.array(network.layer_sizes, dtype=np.int64),
        "learning_rate": np.array([network.learning_rate], dtype=np.float64),
    }
    save_dict.update(network.get_parameters())

    try:
        if hasattr(file, "write"):
            np.savez(file, **save_dict)
        else:
            # Opening the file ourselves stops numpy from appending ".npz"
            with open(file, "wb") as handle:
                np.savez(handle, **save_dict)
    except OSError as e:
        raise SerializationError(f"Could not save network to {file!r}: {e}") from e

    logger.debug("Saved network %s to %r", list(network.layer_sizes), file)


def load_network(file: FileLike) -> Network:
    """
    Load a network saved by save_network().

    Args:
        file: Path or readable binary stream

    Returns:
        Network with the saved layer sizes, parameters and learning rate

    Raises:
        SerializationError: If the archive is unreadable, incomplete or
            inconsistent
    """
    try:
        data = np.load(file, allow_pickle=False)
        if not isinstance(data, np.lib.npyio.NpzFile):
            raise SerializationError(
                f"Could not load network from {file!r}: not an .npz archive"
            )

        with data:
            version = int(data["format_version"][0])
            if version != FORMAT_VERSION:
                raise SerializationError(
                    f"Unsupported network format version {version}"
                )

            layer_sizes = [int(size) for size in data["layer_sizes"]]
            learning_rate = float(data["learning_rate"][0])
            params = {
                key: data[key]
                for key in data.files
                if key.startswith("weight_") or key.startswith("bias_")
            }

        network = Network(layer_sizes, learning_rate=learning_rate)
        network.set_parameters(params)
    except SerializationError:
        raise
    except (
        OSError,
        EOFError,
        TypeError,
        ValueError,
        KeyError,
        IndexError,
        zipfile.BadZipFile,
    ) as e:
        raise SerializationError(f"Could not load network from {file!r}: {e}") from e

    logger.debug("Loaded network %s from %r", layer_sizes, file)
    return network
