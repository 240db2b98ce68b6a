"""Training loop, metrics and pipelines."""

from .trainer import Trainer, mini_batches, stochastic_gradient_descent

__all__ = ["Trainer", "mini_batches", "stochastic_gradient_descent"]
