"""
Activation Function for the Network

This module implements the logistic sigmoid used by every layer, together
with its derivative for gradient computation during training.

Functions:
    sigmoid: Logistic function 1 / (1 + e^-x)
    sigmoid_derivative: Derivative of sigmoid, expressed in terms of its output
"""

import numpy as np

# exp(500) is still finite in float64; beyond it sigmoid is 0.0 or 1.0 anyway
_EXPONENT_LIMIT = 500.0


def sigmoid(x: np.ndarray) -> np.ndarray:
    """
    Compute the logistic sigmoid element-wise.

    Mathematical Formula:
        sigmoid(x) = 1 / (1 + exp(-x))

    Properties:
        - Output is in the open interval (0, 1) for finite x
        - sigmoid(0) = 0.5
        - sigmoid(-x) = 1 - sigmoid(x)

    Args:
        x: Input array (or scalar) of any shape.

    Returns:
        Array of the same shape with sigmoid applied element-wise.

    Example:
        >>> sigmoid(np.array([-1.0, 0.0, 1.0]))
        array([0.269, 0.5, 0.731])
    """
    clipped = np.clip(x, -_EXPONENT_LIMIT, _EXPONENT_LIMIT)
    return 1.0 / (1.0 + np.exp(-clipped))


def sigmoid_derivative(y: np.ndarray) -> np.ndarray:
    """
    Compute the sigmoid derivative from an already activated output.

    If y = sigmoid(x), then d(sigmoid)/dx = y * (1 - y). Taking the
    activated value avoids recomputing the exponential during the
    backward pass.

    Args:
        y: Output of sigmoid(), any shape.

    Returns:
        Array of the same shape holding y * (1 - y).
    """
    return y * (1.0 - y)
