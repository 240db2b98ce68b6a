import numpy as np
import pytest

from backpropnet.core.errors import DimensionMismatch
from backpropnet.core.network import Network
from backpropnet.core.types import Example


def _fixed_2_2_1() -> Network:
    net = Network([2, 2, 1], rng=np.random.default_rng(0))
    net.load_state_dict(
        {
            "W0": np.array([[0.15, 0.20], [0.25, 0.30]]),
            "b0": np.array([0.35, 0.35]),
            "W1": np.array([[0.40, 0.45]]),
            "b1": np.array([0.60]),
        }
    )
    return net


def _numeric_gradient(net, params, idx, x, y, eps=1e-5):
    original = params[idx]
    params[idx] = original + eps
    plus = net.loss(x, y)
    params[idx] = original - eps
    minus = net.loss(x, y)
    params[idx] = original
    return (plus - minus) / (2 * eps)


@pytest.mark.parametrize("sizes", [[3, 4, 2], [2, 3, 3, 2], [4, 3]])
def test_gradients_match_central_finite_differences(sizes):
    rng = np.random.default_rng(11)
    net = Network(sizes, rng=rng)
    x = rng.uniform(0.0, 1.0, size=sizes[0])
    y = np.zeros(sizes[-1])
    y[-1] = 1.0

    grads = net.backprop(x, y)
    for W, grad in zip(net.weights, grads.weights):
        for idx in np.ndindex(W.shape):
            numeric = _numeric_gradient(net, W, idx, x, y)
            assert grad[idx] == pytest.approx(numeric, abs=1e-6)
    for b, grad in zip(net.biases, grads.biases):
        for idx in np.ndindex(b.shape):
            numeric = _numeric_gradient(net, b, idx, x, y)
            assert grad[idx] == pytest.approx(numeric, abs=1e-6)


def test_gradient_shapes_mirror_parameters():
    net = Network([5, 4, 3, 2], rng=np.random.default_rng(0))
    grads = net.backprop(np.ones(5), np.array([0.0, 1.0]))
    assert [g.shape for g in grads.weights] == [W.shape for W in net.weights]
    assert [g.shape for g in grads.biases] == [b.shape for b in net.biases]


def test_repeated_backprop_is_bit_identical():
    net = Network([6, 5, 3], rng=np.random.default_rng(2))
    x = np.linspace(-1.0, 1.0, 6)
    y = np.array([0.0, 0.0, 1.0])
    first = net.backprop(x, y)
    second = net.backprop(x, y)
    for a, b in zip(first.weights + first.biases, second.weights + second.biases):
        assert np.array_equal(a, b)


def test_backprop_does_not_mutate_parameters():
    net = Network([3, 4, 2], rng=np.random.default_rng(0))
    before = net.state_dict()
    net.backprop([0.1, 0.2, 0.3], [1.0, 0.0])
    for key, value in net.state_dict().items():
        assert np.array_equal(value, before[key])


def test_single_transition_network_uses_output_error_only():
    net = Network([3, 2], rng=np.random.default_rng(4))
    x = np.array([0.2, 0.4, 0.6])
    y = np.array([1.0, 0.0])
    z = net.weights[0] @ x + net.biases[0]
    a = 1.0 / (1.0 + np.exp(-z))
    delta = (a - y) * a * (1.0 - a)

    grads = net.backprop(x, y)
    assert np.allclose(grads.biases[0], delta, atol=1e-15)
    assert np.allclose(grads.weights[0], np.outer(delta, x), atol=1e-15)


def test_known_network_gradients():
    net = _fixed_2_2_1()
    grads = net.backprop([1.0, 0.5], [1.0])
    assert net.feedforward([1.0, 0.5])[0] == pytest.approx(0.76203936200684408, abs=1e-12)
    assert np.allclose(grads.biases[1], [-0.04315068099246936], atol=1e-12)
    assert np.allclose(
        grads.weights[1], [[-0.027860509300725405, -0.029307023384997695]], atol=1e-12
    )
    assert np.allclose(grads.biases[0], [-0.003948878310419849, -0.0042310428145524619], atol=1e-12)
    assert np.allclose(
        grads.weights[0],
        [
            [-0.003948878310419849, -0.0019744391552099245],
            [-0.0042310428145524619, -0.002115521407276231],
        ],
        atol=1e-12,
    )


def test_known_network_single_update():
    net = _fixed_2_2_1()
    net.update_mini_batch([Example(np.array([1.0, 0.5]), np.array([1.0]))], 0.1)
    assert np.allclose(
        net.weights[0],
        [[0.15039488783104199, 0.200197443915521], [0.25042310428145526, 0.30021155214072759]],
        atol=1e-9,
    )
    assert np.allclose(net.biases[0], [0.35039488783104195, 0.35042310428145523], atol=1e-9)
    assert np.allclose(net.weights[1], [[0.40278605093007258, 0.4529307023384998]], atol=1e-9)
    assert np.allclose(net.biases[1], [0.60431506809924695], atol=1e-9)


@pytest.mark.parametrize(
    "x, y",
    [
        (np.zeros(2), np.zeros(2)),
        (np.zeros(3), np.zeros(3)),
        (np.zeros(3), np.zeros(1)),
        (np.zeros((3, 1)), np.zeros(2)),
    ],
)
def test_backprop_rejects_mismatched_vectors(x, y):
    net = Network([3, 4, 2], rng=np.random.default_rng(0))
    with pytest.raises(DimensionMismatch):
        net.backprop(x, y)
