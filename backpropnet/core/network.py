"""Fully-connected sigmoid network trained by backpropagation."""

from __future__ import annotations

from typing import Iterable, List, Mapping, Sequence

import numpy as np

from .activations import sigmoid, sigmoid_prime
from .errors import DimensionMismatch, EmptyBatch, InvalidTopology
from .losses import quadratic
from .sampling import default_rng, gaussian
from .types import ActivationTrace, Array, Example, Gradients


def _validate_sizes(sizes: Sequence[int]) -> List[int]:
    try:
        dims = list(sizes)
    except TypeError as exc:
        raise InvalidTopology(f"Layer sizes must be a sequence, got {sizes!r}") from exc
    if len(dims) < 2:
        raise InvalidTopology(
            f"A network needs at least an input and an output layer, got {dims}"
        )
    for idx, size in enumerate(dims):
        if isinstance(size, bool) or not isinstance(size, (int, np.integer)):
            raise InvalidTopology(f"Layer {idx} size must be an integer, got {size!r}")
        if size <= 0:
            raise InvalidTopology(f"Layer {idx} size must be positive, got {size}")
    return [int(size) for size in dims]


def _as_vector(values: Array | Sequence[float], expected: int, what: str) -> Array:
    vector = np.asarray(values, dtype=np.float64)
    if vector.ndim != 1 or vector.shape[0] != expected:
        raise DimensionMismatch(
            f"{what} must be a vector of length {expected}, got shape {vector.shape}"
        )
    return vector


class Network:
    """Feed-forward network of sigmoid neurons.

    ``sizes`` lists the neuron count of every layer, input first.  The weight
    matrix for transition ``l`` (layer ``l`` to layer ``l + 1``) has shape
    ``(sizes[l + 1], sizes[l])`` and ``biases[l]`` belongs to layer ``l + 1``.
    Parameters are standard-normal draws from ``rng``; pass a seeded
    ``numpy.random.Generator`` for reproducible initialisation.
    """

    def __init__(
        self, sizes: Sequence[int], rng: np.random.Generator | None = None
    ) -> None:
        self.sizes = _validate_sizes(sizes)
        self.num_layers = len(self.sizes)
        rng = default_rng(rng)
        self.biases: List[Array] = [gaussian(rng, (size,)) for size in self.sizes[1:]]
        self.weights: List[Array] = [
            gaussian(rng, (out_dim, in_dim))
            for in_dim, out_dim in zip(self.sizes[:-1], self.sizes[1:])
        ]

    def __repr__(self) -> str:
        return f"Network(sizes={self.sizes})"

    # ------------------------------------------------------------------
    # Forward engine

    def feedforward(self, inputs: Array | Sequence[float]) -> Array:
        """Return the output activations for ``inputs``."""

        x = _as_vector(inputs, self.sizes[0], "Input")
        return self._propagate(x).output

    def trace(self, inputs: Array | Sequence[float]) -> ActivationTrace:
        """Run a forward pass and keep every weighted sum and activation."""

        x = _as_vector(inputs, self.sizes[0], "Input")
        return self._propagate(x)

    def _propagate(self, x: Array) -> ActivationTrace:
        activations = [x]
        weighted_sums: List[Array] = []
        a = x
        for W, b in zip(self.weights, self.biases):
            z = W @ a + b
            a = sigmoid(z)
            weighted_sums.append(z)
            activations.append(a)
        return ActivationTrace(activations=activations, weighted_sums=weighted_sums)

    # ------------------------------------------------------------------
    # Backward engine

    def backprop(
        self, inputs: Array | Sequence[float], target: Array | Sequence[float]
    ) -> Gradients:
        """Return the quadratic-loss gradients for a single example."""

        x = _as_vector(inputs, self.sizes[0], "Input")
        y = _as_vector(target, self.sizes[-1], "Target")
        trace = self._propagate(x)
        activations = trace.activations
        zs = trace.weighted_sums

        grad_w: List[Array] = [np.empty_like(W) for W in self.weights]
        grad_b: List[Array] = [np.empty_like(b) for b in self.biases]

        last = len(self.weights) - 1
        _, dloss = quadratic(activations[-1], y)
        delta = dloss * sigmoid_prime(zs[last])
        grad_b[last] = delta
        grad_w[last] = np.outer(delta, activations[last])

        # Transition l maps activations[l] to activations[l + 1]; its error is
        # pulled back through the weights of transition l + 1.
        for layer in range(last - 1, -1, -1):
            delta = (self.weights[layer + 1].T @ delta) * sigmoid_prime(zs[layer])
            grad_b[layer] = delta
            grad_w[layer] = np.outer(delta, activations[layer])

        return Gradients(weights=grad_w, biases=grad_b)

    # ------------------------------------------------------------------
    # Batch update

    def update_mini_batch(
        self, batch: Sequence[Example | tuple[Array, Array]], learning_rate: float
    ) -> None:
        """Apply one gradient-descent step averaged over ``batch``.

        Gradients are summed in batch order into a fresh accumulator and the
        parameters are only written once every example has been processed.
        """

        if len(batch) == 0:
            raise EmptyBatch("Cannot update on an empty mini-batch")
        if not learning_rate > 0:
            raise ValueError(f"learning_rate must be positive, got {learning_rate!r}")

        total = Gradients.zeros_like(self.weights, self.biases)
        for inputs, target in batch:
            total.accumulate(self.backprop(inputs, target))

        step = learning_rate / len(batch)
        for W, grad in zip(self.weights, total.weights):
            W -= step * grad
        for b, grad in zip(self.biases, total.biases):
            b -= step * grad

    # ------------------------------------------------------------------
    # Evaluation helpers

    def evaluate(self, test_data: Iterable[Example | tuple[Array, Array]]) -> int:
        """Count examples whose predicted class matches the target class."""

        correct = 0
        for inputs, target in test_data:
            y = _as_vector(target, self.sizes[-1], "Target")
            if int(np.argmax(self.feedforward(inputs))) == int(np.argmax(y)):
                correct += 1
        return correct

    def predict(self, inputs: Array | Sequence[float]) -> int:
        """Return the index of the strongest output neuron."""

        return int(np.argmax(self.feedforward(inputs)))

    def loss(
        self, inputs: Array | Sequence[float], target: Array | Sequence[float]
    ) -> float:
        """Quadratic loss ``0.5 * sum((a - y)^2)`` for one example."""

        y = _as_vector(target, self.sizes[-1], "Target")
        value, _ = quadratic(self.feedforward(inputs), y)
        return value

    # ------------------------------------------------------------------
    # Parameter access

    def state_dict(self) -> Mapping[str, Array]:
        """Return copies of every parameter keyed ``W{l}`` / ``b{l}``."""

        state = {f"W{idx}": W.copy() for idx, W in enumerate(self.weights)}
        state.update({f"b{idx}": b.copy() for idx, b in enumerate(self.biases)})
        return state

    def load_state_dict(self, state: Mapping[str, Array]) -> None:
        """Overwrite parameters element-wise; shapes must match exactly."""

        updates: list[tuple[Array, Array]] = []
        for prefix, params in (("W", self.weights), ("b", self.biases)):
            for idx, current in enumerate(params):
                key = f"{prefix}{idx}"
                if key not in state:
                    raise KeyError(f"Missing parameter {key} in state dict")
                value = np.asarray(state[key], dtype=np.float64)
                if value.shape != current.shape:
                    raise DimensionMismatch(
                        f"Parameter {key} has shape {value.shape}, expected {current.shape}"
                    )
                updates.append((current, value))
        for current, value in updates:
            current[...] = value

    def parameter_count(self) -> int:
        return int(sum(W.size for W in self.weights) + sum(b.size for b in self.biases))


__all__ = ["Network"]
