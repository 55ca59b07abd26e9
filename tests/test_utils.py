"""
Tests for Utility Functions

Tests for network persistence, datasets and the training loop.
"""

import io
import logging

import numpy as np
import pytest

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


@pytest.fixture
def trained_network():
    """Create a small network with some training applied."""
    network = Network([3, 5, 2], learning_rate=0.4, seed=3)
    for _ in range(20):
        network.train([0.1, 0.5, 0.9], [0.2, 0.8])
        network.train([0.7, 0.3, 0.0], [0.9, 0.1])
    return network


class TestPersistence:
    """Test save_network / load_network."""

    def test_round_trip_path(self, trained_network, tmp_path):
        """Loading a saved network gives bit-for-bit identical predictions."""
        path = tmp_path / "network.npz"
        save_network(trained_network, str(path))
        loaded = load_network(str(path))

        inputs = [0.25, -0.5, 1.5]
        assert loaded.predict(inputs) == trained_network.predict(inputs)

    def test_round_trip_restores_state(self, trained_network, tmp_path):
        path = tmp_path / "network.npz"
        save_network(trained_network, path)
        loaded = load_network(path)

        assert loaded.layer_sizes == trained_network.layer_sizes
        assert loaded.learning_rate == 0.4
        for key, value in trained_network.get_parameters().items():
            np.testing.assert_array_equal(loaded.get_parameters()[key], value)

    def test_path_without_extension_is_kept(self, trained_network, tmp_path):
        """The exact path given is written, without an added suffix."""
        path = tmp_path / "model"
        save_network(trained_network, str(path))

        assert path.exists()
        assert load_network(str(path)).layer_sizes == (3, 5, 2)

    def test_round_trip_byte_stream(self, trained_network):
        buffer = io.BytesIO()
        save_network(trained_network, buffer)
        buffer.seek(0)
        loaded = load_network(buffer)

        inputs = [1.0, 0.0, 0.5]
        assert loaded.predict(inputs) == trained_network.predict(inputs)

    def test_loaded_network_keeps_training_identically(self, trained_network):
        buffer = io.BytesIO()
        save_network(trained_network, buffer)
        buffer.seek(0)
        loaded = load_network(buffer)

        trained_network.train([0.3, 0.3, 0.3], [0.5, 0.5])
        loaded.train([0.3, 0.3, 0.3], [0.5, 0.5])

        assert loaded.predict([0.0, 1.0, 0.0]) == trained_network.predict([0.0, 1.0, 0.0])

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(SerializationError):
            load_network(str(tmp_path / "missing.npz"))

    def test_load_garbage(self):
        with pytest.raises(SerializationError):
            load_network(io.BytesIO(b"definitely not an archive"))

    def test_load_missing_parameter(self, tmp_path):
        path = tmp_path / "partial.npz"
        with open(path, "wb") as handle:
            np.savez(
                handle,
                format_version=np.array([1]),
                layer_sizes=np.array([2, 1]),
                learning_rate=np.array([1.0]),
                weight_0=np.zeros((2, 1)),
            )

        with pytest.raises(SerializationError, match="bias_0"):
            load_network(str(path))

    def test_load_inconsistent_shapes(self, tmp_path):
        path = tmp_path / "bad.npz"
        with open(path, "wb") as handle:
            np.savez(
                handle,
                format_version=np.array([1]),
                layer_sizes=np.array([2, 1]),
                learning_rate=np.array([1.0]),
                weight_0=np.zeros((3, 1)),
                bias_0=np.zeros((1, 1)),
            )

        with pytest.raises(SerializationError):
            load_network(str(path))

    def test_load_unknown_version(self, trained_network):
        buffer = io.BytesIO()
        np.savez(buffer, format_version=np.array([99]))
        buffer.seek(0)

        with pytest.raises(SerializationError, match="version 99"):
            load_network(buffer)

    def test_load_plain_npy_array(self):
        """A bare .npy array is not a network archive."""
        buffer = io.BytesIO()
        np.save(buffer, np.zeros((2, 2)))
        buffer.seek(0)

        with pytest.raises(SerializationError, match="not an .npz archive"):
            load_network(buffer)

    def test_save_to_missing_directory(self, trained_network, tmp_path):
        with pytest.raises(SerializationError):
            save_network(trained_network, str(tmp_path / "no" / "such" / "dir.npz"))


class TestDatasetsAndLoss:
    """Test the XOR dataset and mean squared error."""

    def test_xor_dataset(self):
        dataset = xor_dataset()

        assert len(dataset) == 4
        for inputs, targets in dataset:
            assert targets[0] == float(int(inputs[0]) ^ int(inputs[1]))

    def test_mean_squared_error(self):
        network = Network([2, 1], seed=0)
        network.set_parameters({"weight_0": np.zeros((2, 1)), "bias_0": np.zeros((1, 1))})

        # Output is always 0.5, so every squared error is 0.25
        assert mean_squared_error(network, xor_dataset()) == 0.25

    def test_mean_squared_error_empty(self):
        with pytest.raises(ValueError):
            mean_squared_error(Network([2, 1], seed=0), [])

    def test_mean_squared_error_wrong_target_length(self):
        """A target longer than the output layer is rejected, not broadcast."""
        network = Network([2, 1], seed=0)

        with pytest.raises(DimensionMismatchError, match="Expected 1 target"):
            mean_squared_error(network, [([0.0, 0.0], [0.0, 1.0])])

    def test_mean_squared_error_agrees_with_training(self):
        """A dataset train_network rejects is also rejected for evaluation."""
        dataset = [([0.0, 1.0], [1.0]), ([1.0, 1.0], [0.0, 0.0])]

        with pytest.raises(DimensionMismatchError):
            train_network(Network([2, 1], seed=0), dataset, TrainingConfig(epochs=1, log_every=0))
        with pytest.raises(DimensionMismatchError):
            mean_squared_error(Network([2, 1], seed=0), dataset)


class TestTrainNetwork:
    """Test the per-sample training loop."""

    def test_sets_learning_rate_and_returns_losses(self):
        network = Network([2, 3, 1], seed=0)
        losses = train_network(
            network, xor_dataset(), TrainingConfig(epochs=7, learning_rate=0.25, log_every=0)
        )

        assert network.learning_rate == 0.25
        assert len(losses) == 7
        assert all(loss >= 0.0 for loss in losses)

    def test_seeded_training_is_reproducible(self):
        config = TrainingConfig(epochs=50, learning_rate=0.5, seed=9, log_every=0)
        a = Network([2, 3, 1], seed=1)
        b = Network([2, 3, 1], seed=1)

        assert train_network(a, xor_dataset(), config) == train_network(b, xor_dataset(), config)

    def test_loss_decreases(self):
        network = Network([2, 4, 1], seed=0)
        dataset = [([0.0, 1.0], [0.9]), ([1.0, 0.0], [0.1])]
        losses = train_network(
            network, dataset, TrainingConfig(epochs=300, learning_rate=0.5, seed=0, log_every=0)
        )

        assert losses[-1] < losses[0]

    def test_logs_progress(self, caplog):
        network = Network([2, 2, 1], seed=0)
        config = TrainingConfig(epochs=4, learning_rate=0.5, shuffle=False, log_every=2)

        with caplog.at_level(logging.INFO, logger="matrixnn.utils"):
            train_network(network, xor_dataset(), config)

        messages = [record.getMessage() for record in caplog.records]
        assert any(message.startswith("Epoch 2/4") for message in messages)
        assert any(message.startswith("Epoch 4/4") for message in messages)

    def test_empty_dataset(self):
        with pytest.raises(ValueError):
            train_network(Network([2, 1], seed=0), [], TrainingConfig(epochs=1))
