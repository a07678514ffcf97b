from __future__ import annotations

import random
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from .matrix import Matrix, ShapeError


@dataclass
class Layer:
    index: int
    weight: Matrix
    bias: Matrix

    @property
    def in_width(self) -> int:
        return self.weight.rows

    @property
    def out_width(self) -> int:
        return self.weight.cols


class ModelParams:
    """Weights and biases of a fully connected sigmoid network.

    ``structure`` lists the layer widths ``[n0, n1, ..., nL]``. Layer ``i`` maps an
    ``n_i``-wide activation to ``n_{i+1}`` values through a ``(n_i, n_{i+1})`` weight
    matrix and a ``(1, n_{i+1})`` bias row. All parameters start at zero.
    """

    def __init__(self, structure: Sequence[int]) -> None:
        if len(structure) < 2:
            raise ValueError(f"A network needs at least two widths, got {list(structure)}")
        for width in structure:
            if not isinstance(width, int) or isinstance(width, bool) or width <= 0:
                raise ValueError(f"Layer widths must be positive integers, got {list(structure)}")
        self.layers: list[Layer] = [
            Layer(index=i, weight=Matrix(n_in, n_out), bias=Matrix(1, n_out))
            for i, (n_in, n_out) in enumerate(zip(structure[:-1], structure[1:]))
        ]

    def structure(self) -> list[int]:
        return [self.layers[0].in_width] + [layer.out_width for layer in self.layers]

    def matrices(self) -> Iterator[Matrix]:
        """Yield every parameter matrix in probe order: w0, b0, w1, b1, ..."""
        for layer in self.layers:
            yield layer.weight
            yield layer.bias

    def parameter_count(self) -> int:
        return sum(len(m.data) for m in self.matrices())

    def fill(self, value: float) -> None:
        for m in self.matrices():
            m.fill(value)

    def randomize(self, low: float, high: float, rng: random.Random | None = None) -> None:
        for m in self.matrices():
            m.randomize(low, high, rng)

    def copy(self) -> ModelParams:
        clone = ModelParams(self.structure())
        for dst, src in zip(clone.matrices(), self.matrices()):
            dst.data = list(src.data)
        return clone

    def to_payload(self) -> dict:
        return {
            "structure": self.structure(),
            "layers": [{"weight": layer.weight.to_rows(), "bias": layer.bias.to_rows()} for layer in self.layers],
        }

    @classmethod
    def from_payload(cls, payload: dict) -> ModelParams:
        params = cls(payload["structure"])
        stored_layers = payload["layers"]
        if len(stored_layers) != len(params.layers):
            raise ShapeError(
                f"Payload stores {len(stored_layers)} layers, structure {params.structure()} needs {len(params.layers)}"
            )
        for layer, stored in zip(params.layers, stored_layers):
            weight = Matrix.from_rows(stored["weight"])
            bias = Matrix.from_rows(stored["bias"])
            if weight.shape != layer.weight.shape or bias.shape != layer.bias.shape:
                raise ShapeError(f"Stored layer {layer.index} does not match structure {params.structure()}")
            layer.weight = weight
            layer.bias = bias
        return params

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ModelParams):
            return NotImplemented
        return self.structure() == other.structure() and all(
            a == b for a, b in zip(self.matrices(), other.matrices())
        )

    def __repr__(self) -> str:
        return f"ModelParams(structure={self.structure()})"


def forward(params: ModelParams, x: Sequence[float]) -> list[float]:
    activation = Matrix.from_rows([x])
    for layer in params.layers:
        activation = activation.dot(layer.weight).add(layer.bias).sigmoid()
    return activation.row(0)


def cost(
    params: ModelParams,
    train_inputs: Sequence[Sequence[float]],
    train_outputs: Sequence[Sequence[float]],
) -> float:
    """Squared error summed over output units, averaged over samples only."""
    if len(train_inputs) != len(train_outputs):
        raise ShapeError(f"{len(train_inputs)} inputs but {len(train_outputs)} outputs")
    if not train_inputs:
        raise ValueError("Training set is empty")
    structure = params.structure()
    n_in, n_out = structure[0], structure[-1]

    acc = 0.0
    for i, (x, y) in enumerate(zip(train_inputs, train_outputs)):
        if len(x) != n_in:
            raise ShapeError(f"Sample {i} input has {len(x)} values, network expects {n_in}")
        if len(y) != n_out:
            raise ShapeError(f"Sample {i} output has {len(y)} values, network produces {n_out}")
        guessed = forward(params, x)
        for g, t in zip(guessed, y):
            diff = g - t
            acc += diff * diff
    return acc / len(train_inputs)


def finite_diff(
    params: ModelParams,
    train_inputs: Sequence[Sequence[float]],
    train_outputs: Sequence[Sequence[float]],
    eps: float,
) -> ModelParams:
    """Estimate d(cost)/d(param) for every parameter with a forward difference.

    Each coordinate of a scratch copy is nudged by ``eps``, the cost is re-evaluated,
    and the coordinate is restored before the next probe, so ``params`` itself is
    never touched. ``eps`` must be non-zero; zero raises ``ZeroDivisionError``.
    """
    baseline = cost(params, train_inputs, train_outputs)
    scratch = params.copy()
    grad = ModelParams(params.structure())

    for probe, out in zip(scratch.matrices(), grad.matrices()):
        for k in range(len(probe.data)):
            saved = probe.data[k]
            probe.data[k] = saved + eps
            nudged = cost(scratch, train_inputs, train_outputs)
            probe.data[k] = saved
            out.data[k] = (nudged - baseline) / eps
    return grad


def descend(params: ModelParams, grad: ModelParams, rate: float) -> ModelParams:
    if grad.structure() != params.structure():
        raise ShapeError(f"Gradient structure {grad.structure()} does not match {params.structure()}")
    result = ModelParams(params.structure())
    for dst, p, g in zip(result.matrices(), params.matrices(), grad.matrices()):
        dst.data = [pv - rate * gv for pv, gv in zip(p.data, g.data)]
    return result
