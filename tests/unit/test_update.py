import numpy as np
import pytest

from backpropnet.core.errors import DimensionMismatch, EmptyBatch
from backpropnet.core.network import Network
from backpropnet.core.types import Example


def _example(rng, sizes):
    target = np.zeros(sizes[-1])
    target[rng.integers(0, sizes[-1])] = 1.0
    return Example(rng.uniform(0.0, 1.0, size=sizes[0]), target)


def test_batch_of_one_applies_the_scaled_gradient():
    sizes = [4, 3, 2]
    updated = Network(sizes, rng=np.random.default_rng(8))
    reference = Network(sizes, rng=np.random.default_rng(8))
    example = _example(np.random.default_rng(1), sizes)

    grads = reference.backprop(example.inputs, example.target)
    updated.update_mini_batch([example], 0.7)

    for W, W_ref, g in zip(updated.weights, reference.weights, grads.weights):
        assert np.array_equal(W, W_ref - 0.7 * g)
    for b, b_ref, g in zip(updated.biases, reference.biases, grads.biases):
        assert np.array_equal(b, b_ref - 0.7 * g)


def test_batch_update_averages_gradients():
    sizes = [3, 4, 2]
    rng = np.random.default_rng(2)
    batch = [_example(rng, sizes) for _ in range(5)]
    net = Network(sizes, rng=np.random.default_rng(3))
    reference = Network(sizes, rng=np.random.default_rng(3))

    summed = [np.zeros_like(W) for W in reference.weights]
    summed_b = [np.zeros_like(b) for b in reference.biases]
    for example in batch:
        grads = reference.backprop(example.inputs, example.target)
        for total, g in zip(summed, grads.weights):
            total += g
        for total, g in zip(summed_b, grads.biases):
            total += g

    net.update_mini_batch(batch, 1.5)
    for W, W_ref, total in zip(net.weights, reference.weights, summed):
        assert np.allclose(W, W_ref - (1.5 / 5) * total, atol=1e-14)
    for b, b_ref, total in zip(net.biases, reference.biases, summed_b):
        assert np.allclose(b, b_ref - (1.5 / 5) * total, atol=1e-14)


def test_update_accepts_plain_tuples():
    sizes = [2, 2]
    a = Network(sizes, rng=np.random.default_rng(0))
    b = Network(sizes, rng=np.random.default_rng(0))
    x, y = np.array([0.1, 0.9]), np.array([1.0, 0.0])
    a.update_mini_batch([(x, y)], 0.5)
    b.update_mini_batch([Example(x, y)], 0.5)
    assert np.array_equal(a.weights[0], b.weights[0])


def test_update_keeps_parameter_buffers_and_shapes():
    net = Network([3, 2, 2], rng=np.random.default_rng(0))
    buffers = [id(W) for W in net.weights] + [id(b) for b in net.biases]
    shapes = [W.shape for W in net.weights]
    net.update_mini_batch([_example(np.random.default_rng(0), [3, 2, 2])], 0.1)
    assert [id(W) for W in net.weights] + [id(b) for b in net.biases] == buffers
    assert [W.shape for W in net.weights] == shapes


def test_empty_batch_is_rejected():
    net = Network([2, 2], rng=np.random.default_rng(0))
    with pytest.raises(EmptyBatch):
        net.update_mini_batch([], 0.1)


@pytest.mark.parametrize("rate", [0.0, -0.5, float("nan")])
def test_non_positive_learning_rate_is_rejected(rate):
    net = Network([2, 2], rng=np.random.default_rng(0))
    with pytest.raises(ValueError):
        net.update_mini_batch([(np.zeros(2), np.zeros(2))], rate)


def test_malformed_example_leaves_parameters_untouched():
    net = Network([3, 4, 2], rng=np.random.default_rng(0))
    before = net.state_dict()
    good = Example(np.ones(3), np.array([1.0, 0.0]))
    bad = Example(np.ones(5), np.array([1.0, 0.0]))
    with pytest.raises(DimensionMismatch):
        net.update_mini_batch([good, good, bad], 0.5)
    for key, value in net.state_dict().items():
        assert np.array_equal(value, before[key])
