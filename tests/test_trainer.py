import math

import numpy as np
import pytest

from mlpviz.errors import InvalidConfig
from mlpviz.nn.cost import cost
from mlpviz.nn.matrix import Matrix
from mlpviz.nn.network import Network
from mlpviz.training.finite_difference import FiniteDifferenceTrainer


class Bowl:
    """Single-parameter model with the cost (p - center)^2."""

    def __init__(self, p: float, center: float = 3.0) -> None:
        self.p = p
        self.center = center

    def total_parameter_count(self) -> int:
        return 1

    def get_param(self, index: int) -> float:
        assert index == 0
        return self.p

    def set_param(self, index: int, value: float) -> None:
        assert index == 0
        self.p = value


def bowl_cost(model, _dataset):
    return (model.p - model.center) ** 2


@pytest.mark.parametrize("eps, rate", [(0.0, 0.1), (-1e-3, 0.1), (1e-1, -0.1), (math.nan, 0.1), (0.1, math.inf)])
def test_invalid_settings(eps, rate):
    with pytest.raises(InvalidConfig):
        FiniteDifferenceTrainer(eps=eps, learning_rate=rate)


def test_zero_learning_rate_is_allowed():
    FiniteDifferenceTrainer(eps=1e-2, learning_rate=0.0)


@pytest.mark.parametrize("p", [-4.0, 0.0, 2.5, 3.5, 10.0])
def test_gradient_sign_matches_analytic_derivative(p):
    eps = 1e-3
    trainer = FiniteDifferenceTrainer(eps=eps, learning_rate=0.1, cost_fn=bowl_cost)
    model = Bowl(p)

    base, grad = trainer.gradient(model, None)

    analytic = 2.0 * (p - model.center)
    assert base == pytest.approx((p - 3.0) ** 2)
    assert np.sign(grad[0]) == np.sign(analytic)
    # One-sided difference on a parabola is off by exactly eps
    assert grad[0] == pytest.approx(analytic + eps, abs=1e-6)
    # Parameter restored after the probe
    assert model.p == p


def test_step_moves_down_the_bowl():
    trainer = FiniteDifferenceTrainer(eps=1e-4, learning_rate=0.1, cost_fn=bowl_cost)
    model = Bowl(0.0)
    costs = [trainer.step(model, None) for _ in range(50)]
    assert costs == sorted(costs, reverse=True)
    assert model.p == pytest.approx(3.0, abs=1e-2)


def test_gradient_matches_manual_difference_quotients(xor_net, xor):
    eps = 1e-1
    trainer = FiniteDifferenceTrainer(eps=eps, learning_rate=1e-1)
    before = xor_net.parameters()

    base, grad = trainer.gradient(xor_net, xor)

    assert grad.shape == (xor_net.total_parameter_count(),)
    assert base == cost(xor_net, xor)
    assert np.array_equal(xor_net.parameters(), before)

    for i in range(xor_net.total_parameter_count()):
        probe = Network.from_layers(xor_net.layers)
        probe.set_param(i, before[i] + eps)
        assert grad[i] == pytest.approx((cost(probe, xor) - base) / eps, rel=1e-12, abs=1e-15)


def test_apply_updates_every_parameter(xor_net):
    trainer = FiniteDifferenceTrainer(eps=1e-1, learning_rate=0.5)
    before = xor_net.parameters()
    grad = np.arange(xor_net.total_parameter_count(), dtype=np.float64)

    trainer.apply(xor_net, grad)

    np.testing.assert_allclose(xor_net.parameters(), before - 0.5 * grad)


def test_step_returns_cost_before_update(xor_net, xor):
    trainer = FiniteDifferenceTrainer()
    expected = cost(xor_net, xor)
    assert trainer.step(xor_net, xor) == expected


def test_small_step_does_not_increase_cost(xor):
    net = Network([2, 2, 1], seed=2024)
    trainer = FiniteDifferenceTrainer(eps=1e-4, learning_rate=1e-2)

    before = cost(net, xor)
    trainer.step(net, xor)
    after = cost(net, xor)

    assert after <= before + 1e-9


def test_restores_parameter_when_cost_raises():
    calls = []

    def failing_cost(model, _dataset):
        calls.append(model.p)
        if len(calls) > 1:
            raise RuntimeError("boom")
        return 0.0

    model = Bowl(1.0)
    trainer = FiniteDifferenceTrainer(eps=0.5, learning_rate=0.1, cost_fn=failing_cost)
    with pytest.raises(RuntimeError):
        trainer.step(model, None)
    assert model.p == 1.0


def _xor_solved(net, xor):
    out_10 = net.forward(Matrix.from_rows([[1.0, 0.0]])).get(0, 0)
    out_00 = net.forward(Matrix.from_rows([[0.0, 0.0]])).get(0, 0)
    return cost(net, xor) < 0.05 and out_10 > 0.5 and out_00 < 0.5


@pytest.mark.slow
def test_xor_end_to_end(xor):
    net = Network([2, 2, 1], seed=10)
    trainer = FiniteDifferenceTrainer(eps=1e-1, learning_rate=1e-1)
    initial = cost(net, xor)

    for _ in range(10_000):
        trainer.step(net, xor)

    assert cost(net, xor) < initial
    assert _xor_solved(net, xor)
