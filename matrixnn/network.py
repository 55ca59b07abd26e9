"""
Feed-Forward Neural Network

This module implements a fully connected feed-forward network trained one
sample at a time by backpropagation with a fixed learning rate. All of the
linear algebra goes through the Matrix primitives in matrixnn.matrix.

Network layout for layer_sizes = [n_0, n_1, ..., n_{L-1}]:
    weights[i]: shape (n_i, n_{i+1})
    biases[i]:  shape (n_{i+1}, 1)
    outputs[i]: shape (n_i, 1), the activated output of layer i

Classes:
    Network: Sigmoid multi-layer perceptron with predict() and train()
    DimensionMismatchError: Raised for input/target vectors of the wrong length
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from matrixnn.activations import sigmoid, sigmoid_derivative
from matrixnn.matrix import Matrix, ShapeMismatchError

logger = logging.getLogger(__name__)


class DimensionMismatchError(ValueError):
    """Raised when an input or target vector does not match its layer size."""


class Network:
    """
    Multi-layer perceptron with sigmoid activations.

    Forward pass, for each layer i = 1 .. L-1:
        outputs[i] = sigmoid(weights[i-1]^T · outputs[i-1] + biases[i-1])

    Training (one input/target pair per call):
        errors = targets - outputs[L-1]
        for i = L-1 down to 1:
            gradient = sigmoid'(outputs[i]) * errors * learning_rate
            biases[i-1]  += gradient
            weights[i-1] += outputs[i-1] · gradient^T
            errors = weights[i-1] · errors

    Note that the error for the previous layer is propagated through the
    weights *after* they have been updated in the same step.

    A Network instance is not thread-safe; independent instances share no
    state.

    Example usage:
        network = Network([2, 4, 1], seed=0)
        network.set_learning_rate(0.5)
        for epoch in range(5000):
            for inputs, targets in xor_dataset():
                network.train(inputs, targets)
        network.predict([1.0, 0.0])  # -> [~0.97]

    Attributes:
        layer_sizes: Number of nodes in each layer, input first
        weights: Weight matrices between consecutive layers
        biases: Bias column for every non-input layer
        outputs: Activated outputs cached by the last predict() call
        learning_rate: Step size used by train()
    """

    def __init__(
        self,
        layer_sizes: Sequence[int],
        learning_rate: float = 1.0,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        """
        Initialize the network with random weights and biases.

        Args:
            layer_sizes: Nodes per layer; at least two positive integers
            learning_rate: Initial learning rate
            seed: Seed for the network's own random generator
            rng: Generator to draw the initial parameters from (overrides seed)
        """
        layer_sizes = tuple(layer_sizes)
        if len(layer_sizes) < 2:
            raise ValueError(
                f"A network needs at least 2 layers, got {len(layer_sizes)}"
            )
        for size in layer_sizes:
            if isinstance(size, bool) or not isinstance(size, (int, np.integer)) or size <= 0:
                raise ValueError(
                    f"Layer sizes must be positive integers, got {list(layer_sizes)}"
                )

        self._layer_sizes: Tuple[int, ...] = tuple(int(size) for size in layer_sizes)
        self.learning_rate = float(learning_rate)
        self._rng = rng if rng is not None else np.random.default_rng(seed)

        # Initial parameters are uniform in [-1, 1)
        self.weights: List[Matrix] = []
        self.biases: List[Matrix] = []
        for fan_in, fan_out in zip(self._layer_sizes[:-1], self._layer_sizes[1:]):
            self.weights.append(self._random_matrix(fan_in, fan_out))
            self.biases.append(self._random_matrix(fan_out, 1))

        # Filled by predict()
        self.outputs: List[Matrix] = []

        logger.debug(
            "Created network with layers %s (%d parameters)",
            list(self._layer_sizes),
            self.num_parameters,
        )

    def _random_matrix(self, rows: int, cols: int) -> Matrix:
        return Matrix.from_array(self._rng.uniform(-1.0, 1.0, size=(rows, cols)))

    @property
    def layer_sizes(self) -> Tuple[int, ...]:
        return self._layer_sizes

    @property
    def num_layers(self) -> int:
        return len(self._layer_sizes)

    @property
    def num_parameters(self) -> int:
        """Total number of weights and biases."""
        return sum(w.rows * w.cols for w in self.weights) + sum(
            b.rows for b in self.biases
        )

    def set_learning_rate(self, learning_rate: float) -> None:
        """Set the learning rate used by subsequent train() calls."""
        self.learning_rate = float(learning_rate)

    def predict(self, input_values: Sequence[float]) -> List[float]:
        """
        Forward pass: compute the network output for one input vector.

        Every layer's activated output is cached in self.outputs, which
        train() relies on for the backward pass.

        Args:
            input_values: One value per input node

        Returns:
            One value in (0, 1) per output node

        Raises:
            DimensionMismatchError: If len(input_values) != layer_sizes[0]
        """
        check_vector_length("input", input_values, self._layer_sizes[0])

        # The input layer's output is the input itself
        outputs = [Matrix.from_column(input_values)]

        for i in range(1, self.num_layers):
            # (1, n_{i-1}) · (n_{i-1}, n_i) -> (1, n_i), then back to a column
            row = Matrix.matrix_multiply(Matrix.transpose(outputs[i - 1]), self.weights[i - 1])
            row.transpose_in_place()
            row.add(self.biases[i - 1])
            row.apply_in_place(sigmoid)
            outputs.append(row)

        self.outputs = outputs
        return outputs[-1].to_column_array()

    def train(
        self, input_values: Sequence[float], target_values: Sequence[float]
    ) -> float:
        """
        Run one step of backpropagation on a single input/target pair.

        Weights and biases are updated in place. The output cache is
        refreshed by the forward pass as a side effect.

        Args:
            input_values: One value per input node
            target_values: Expected output, one value per output node

        Returns:
            Sum of squared output errors before the update

        Raises:
            DimensionMismatchError: If either vector has the wrong length
        """
        check_vector_length("target", target_values, self._layer_sizes[-1])

        # Forward pass populates self.outputs
        self.predict(input_values)

        targets = Matrix.from_column(target_values)
        errors = Matrix.subtract(targets, self.outputs[-1])
        squared_error = float(np.sum(errors.data ** 2))

        for i in range(self.num_layers - 1, 0, -1):
            # Step 1-2: gradient = sigmoid'(output) * error * learning rate
            gradients = Matrix.applied(self.outputs[i], sigmoid_derivative)
            gradients.multiply_elementwise(errors)
            gradients.multiply_scalar(self.learning_rate)

            # Step 3: biases
            self.biases[i - 1].add(gradients)

            # Step 4-5: (n_{i-1}, 1) · (1, n_i) -> (n_{i-1}, n_i)
            delta_weights = Matrix.matrix_multiply(
                self.outputs[i - 1], Matrix.transpose(gradients)
            )
            self.weights[i - 1].add(delta_weights)

            # Step 6: error for the previous layer, through the updated weights
            errors = Matrix.matrix_multiply(self.weights[i - 1], errors)

        return squared_error

    def get_parameters(self) -> Dict[str, np.ndarray]:
        """
        Get copies of all parameters.

        Returns:
            Dictionary with keys weight_{i} and bias_{i}
        """
        params = {}
        for i, (weight, bias) in enumerate(zip(self.weights, self.biases)):
            params[f"weight_{i}"] = weight.data.copy()
            params[f"bias_{i}"] = bias.data.copy()
        return params

    def set_parameters(self, params: Dict[str, np.ndarray]) -> None:
        """
        Replace all parameters.

        Args:
            params: Dictionary in the format returned by get_parameters()

        Raises:
            KeyError: If a parameter is missing
            ShapeMismatchError: If a parameter has the wrong shape
        """
        weights = []
        biases = []
        for i, (weight, bias) in enumerate(zip(self.weights, self.biases)):
            for name, current, bucket in (
                (f"weight_{i}", weight, weights),
                (f"bias_{i}", bias, biases),
            ):
                value = np.asarray(params[name], dtype=np.float64)
                if value.shape != current.shape:
                    raise ShapeMismatchError(
                        f"Parameter {name} has shape {value.shape}, expected {current.shape}"
                    )
                bucket.append(Matrix.from_array(value))

        # Commit only after every parameter checked out
        self.weights = weights
        self.biases = biases

    def __repr__(self) -> str:
        return (
            f"Network(layer_sizes={list(self._layer_sizes)}, "
            f"learning_rate={self.learning_rate})"
        )


def check_vector_length(kind: str, values: Sequence[float], expected: int) -> None:
    """Raise DimensionMismatchError unless values is a flat vector of the expected length."""
    if np.ndim(values) != 1:
        raise DimensionMismatchError(
            f"Expected a flat sequence of {expected} {kind} value(s), "
            f"got {np.ndim(values)} dimension(s)"
        )
    if len(values) != expected:
        raise DimensionMismatchError(
            f"Expected {expected} {kind} value(s), got {len(values)}"
        )
