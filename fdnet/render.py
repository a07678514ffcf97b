from __future__ import annotations

from .matrix import Matrix
from .nn import ModelParams

SEPARATOR = "=" * 20


def format_matrix(m: Matrix) -> str:
    lines = []
    for i in range(m.rows):
        cells = "".join(f"{v:.4f}\t" for v in m.row(i))
        lines.append(f"|\t{cells}\n")
    return "".join(lines)


def format_params(params: ModelParams) -> str:
    blocks = []
    for layer in params.layers:
        blocks.append(
            f"w{layer.index}:\n{format_matrix(layer.weight)}"
            f"b{layer.index}:\n{format_matrix(layer.bias)}"
        )
    return f"{SEPARATOR}\n".join(blocks)
