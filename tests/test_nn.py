import random

import pytest

from fdnet.matrix import ShapeError, sigmoid
from fdnet.nn import ModelParams, cost, descend, finite_diff, forward

XOR_IN = [[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [1.0, 1.0]]
XOR_OUT = [[0.0], [1.0], [1.0], [0.0]]
OR_OUT = [[0.0], [1.0], [1.0], [1.0]]


def _random_params(structure: list[int], seed: int = 42, low: float = 0.0, high: float = 1.0) -> ModelParams:
    params = ModelParams(structure)
    params.randomize(low, high, random.Random(seed))
    return params


@pytest.mark.parametrize("structure", [[2, 1], [2, 2, 1], [3, 5, 4, 2], [1, 1]])
def test_structure_round_trip(structure: list[int]) -> None:
    params = ModelParams(structure)
    assert params.structure() == structure
    params.randomize(-1.0, 1.0, random.Random(0))
    assert params.structure() == structure
    assert params.copy().structure() == structure


def test_layer_shapes() -> None:
    params = ModelParams([3, 5, 2])
    assert [layer.weight.shape for layer in params.layers] == [(3, 5), (5, 2)]
    assert [layer.bias.shape for layer in params.layers] == [(1, 5), (1, 2)]
    assert [layer.index for layer in params.layers] == [0, 1]
    assert params.parameter_count() == 15 + 5 + 10 + 2


@pytest.mark.parametrize("structure", [[], [2], [2, 0], [2, -1, 1]])
def test_invalid_structure(structure: list[int]) -> None:
    with pytest.raises(ValueError):
        ModelParams(structure)


def test_randomize_draws_each_scalar_independently() -> None:
    params = _random_params([2, 2, 1], seed=3)
    values = [v for m in params.matrices() for v in m.data]
    assert len(set(values)) == len(values)
    assert _random_params([2, 2, 1], seed=3) == params


def test_zero_params_forward_is_half() -> None:
    params = ModelParams([2, 1])
    for x in ([0.0, 0.0], [3.0, -7.0], [100.0, 0.25]):
        assert forward(params, x) == [0.5]
    assert forward(ModelParams([2, 2, 1]), [1.0, 1.0]) == [0.5]


def test_forward_single_layer_matches_hand_computation() -> None:
    params = ModelParams([2, 1])
    params.layers[0].weight.set_row(0, [1.0])
    params.layers[0].weight.set_row(1, [-2.0])
    params.layers[0].bias.fill(0.5)
    assert forward(params, [3.0, 1.0]) == [pytest.approx(sigmoid(3.0 - 2.0 + 0.5))]


def test_forward_outputs_in_open_unit_interval() -> None:
    params = _random_params([3, 4, 2], low=-5.0, high=5.0)
    rng = random.Random(1)
    for _ in range(20):
        out = forward(params, [rng.uniform(-3, 3) for _ in range(3)])
        assert len(out) == 2
        assert all(0.0 < v < 1.0 for v in out)


def test_forward_rejects_wrong_input_width() -> None:
    with pytest.raises(ShapeError):
        forward(ModelParams([2, 1]), [1.0, 2.0, 3.0])


def test_cost_is_non_negative() -> None:
    params = _random_params([2, 2, 1])
    assert cost(params, XOR_IN, XOR_OUT) >= 0.0


def test_cost_zero_when_outputs_match() -> None:
    params = ModelParams([2, 1])
    assert cost(params, XOR_IN, [[0.5]] * 4) == 0.0


def test_cost_divides_by_sample_count_only() -> None:
    params = ModelParams([1, 2])
    # every output unit predicts 0.5, so each sample contributes 0.25 + 0.25
    assert cost(params, [[0.0], [1.0]], [[1.0, 1.0], [0.0, 0.0]]) == pytest.approx(0.5)


def test_cost_shape_errors() -> None:
    params = ModelParams([2, 1])
    with pytest.raises(ShapeError):
        cost(params, XOR_IN, XOR_OUT[:3])
    with pytest.raises(ShapeError):
        cost(params, [[0.0, 0.0, 0.0]], [[1.0]])
    with pytest.raises(ShapeError):
        cost(params, [[0.0, 0.0]], [[1.0, 0.0]])
    with pytest.raises(ValueError):
        cost(params, [], [])


def test_finite_diff_matches_forward_difference() -> None:
    params = ModelParams([1, 1])
    eps = 0.1
    grad = finite_diff(params, [[2.0]], [[0.0]], eps)
    assert grad.layers[0].weight[0, 0] == pytest.approx((sigmoid(2 * eps) ** 2 - 0.25) / eps)
    assert grad.layers[0].bias[0, 0] == pytest.approx((sigmoid(eps) ** 2 - 0.25) / eps)


def test_finite_diff_approaches_analytic_derivative() -> None:
    params = ModelParams([1, 1])
    grad = finite_diff(params, [[2.0]], [[0.0]], 1e-6)
    # d/dw sigmoid(w*x + b)^2 at zero = 2 * 0.5 * 0.25 * x
    assert grad.layers[0].weight[0, 0] == pytest.approx(0.5, rel=1e-4)
    assert grad.layers[0].bias[0, 0] == pytest.approx(0.25, rel=1e-4)


def test_finite_diff_leaves_params_untouched() -> None:
    params = _random_params([2, 2, 1])
    snapshot = params.copy()
    grad = finite_diff(params, XOR_IN, XOR_OUT, 0.1)
    assert params == snapshot
    assert grad.structure() == params.structure()
    assert grad is not params


def test_finite_diff_zero_eps_is_invalid() -> None:
    with pytest.raises(ZeroDivisionError):
        finite_diff(ModelParams([2, 1]), XOR_IN, XOR_OUT, 0.0)


def test_descend_updates_every_scalar() -> None:
    params = ModelParams([2, 2, 1])
    params.fill(1.0)
    grad = ModelParams([2, 2, 1])
    grad.fill(2.0)
    updated = descend(params, grad, 0.25)
    assert all(v == 0.5 for m in updated.matrices() for v in m.data)
    assert all(v == 1.0 for m in params.matrices() for v in m.data)
    assert all(v == 2.0 for m in grad.matrices() for v in m.data)


def test_descend_rejects_mismatched_gradient() -> None:
    with pytest.raises(ShapeError):
        descend(ModelParams([2, 2, 1]), ModelParams([2, 1]), 1.0)


def test_xor_cost_drops_over_training() -> None:
    params = _random_params([2, 2, 1])
    costs = []
    for _ in range(2000):
        costs.append(cost(params, XOR_IN, XOR_OUT))
        grad = finite_diff(params, XOR_IN, XOR_OUT, 0.1)
        params = descend(params, grad, 1.0)
    assert costs[-1] < costs[0]
    assert params.structure() == [2, 2, 1]


def test_or_training_orders_outputs() -> None:
    params = _random_params([2, 1], seed=5)
    for _ in range(500):
        params = descend(params, finite_diff(params, XOR_IN, OR_OUT, 0.1), 1.0)
    high = forward(params, [1.0, 1.0])[0]
    low = forward(params, [0.0, 0.0])[0]
    assert abs(1.0 - high) < abs(1.0 - low)
