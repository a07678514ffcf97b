from __future__ import annotations

import argparse
import random
from collections.abc import Callable, Sequence

from .dataset import resolve_dataset
from .monitor import checkpoint_exists, load_checkpoint, save_checkpoint, write_dashboard, write_history_csv
from .nn import ModelParams, cost, descend, finite_diff
from .render import format_params

IterationCallback = Callable[[dict[str, float], ModelParams], None]


def parse_structure(spec: str) -> list[int]:
    spec = spec.strip()
    if not spec:
        raise ValueError("structure cannot be empty")
    widths = []
    for token in spec.split(","):
        token = token.strip()
        if not token.isdigit() or int(token) <= 0:
            raise ValueError(f"Invalid layer width: {token!r}")
        widths.append(int(token))
    if len(widths) < 2:
        raise ValueError(f"structure needs at least an input and an output width, got {spec!r}")
    return widths


def train_step(
    params: ModelParams,
    inputs: Sequence[Sequence[float]],
    outputs: Sequence[Sequence[float]],
    *,
    eps: float,
    rate: float,
) -> tuple[ModelParams, float]:
    """Run one full-batch step; returns the updated params and the cost before the update."""
    current = cost(params, inputs, outputs)
    grad = finite_diff(params, inputs, outputs, eps)
    return descend(params, grad, rate), current


def fit(
    params: ModelParams,
    inputs: Sequence[Sequence[float]],
    outputs: Sequence[Sequence[float]],
    *,
    iterations: int,
    eps: float,
    rate: float,
    start_iteration: int = 0,
    on_iteration: IterationCallback | None = None,
) -> tuple[ModelParams, list[dict[str, float]]]:
    """Train for exactly ``iterations - start_iteration`` steps.

    There is no early stopping: the cost is recorded but never consulted.
    """
    history: list[dict[str, float]] = []
    for iteration in range(start_iteration, iterations):
        params, current = train_step(params, inputs, outputs, eps=eps, rate=rate)
        row = {"iteration": float(iteration), "cost": current}
        history.append(row)
        if on_iteration is not None:
            on_iteration(row, params)
    return params, history


def _run_config(args: argparse.Namespace, structure: list[int]) -> dict:
    return {
        "dataset": args.dataset,
        "structure": structure,
        "iterations": args.iterations,
        "eps": args.eps,
        "rate": args.rate,
        "seed": args.seed,
        "init_low": args.init_low,
        "init_high": args.init_high,
    }


def run_with_callbacks(args: argparse.Namespace, on_iteration: IterationCallback | None = None) -> ModelParams:
    samples = resolve_dataset(args.dataset)
    inputs, outputs = samples.as_arrays()
    structure = parse_structure(args.structure)

    params = ModelParams(structure)
    params.randomize(args.init_low, args.init_high, random.Random(args.seed))
    history: list[dict[str, float]] = []
    start_iteration = 0

    if args.resume and checkpoint_exists(args.checkpoint_path):
        payload = load_checkpoint(args.checkpoint_path)
        params = ModelParams.from_payload(payload["params"])
        history = payload.get("history", [])
        start_iteration = int(payload["iteration"])
        structure = params.structure()
        print(f"Resumed from iteration {start_iteration} with structure {structure}.")

    if structure[0] != samples.input_width or structure[-1] != samples.output_width:
        raise ValueError(
            f"structure {structure} does not fit dataset widths "
            f"({samples.input_width} in, {samples.output_width} out)"
        )

    print(f"structure={structure} parameters={params.parameter_count()} samples={len(samples)}")
    config = _run_config(args, structure)
    state = {"params": params, "iteration": start_iteration}

    def _checkpoint() -> None:
        save_checkpoint(
            args.checkpoint_path,
            iteration=state["iteration"],
            params=state["params"],
            history=history,
            config=config,
        )
        write_history_csv(args.metrics_csv_path, history)
        write_dashboard(args.dashboard_path, history, structure)

    def _on_iteration(row: dict[str, float], updated: ModelParams) -> None:
        history.append(row)
        iteration = int(row["iteration"])
        state["params"] = updated
        state["iteration"] = iteration + 1
        if args.log_every > 0 and iteration % args.log_every == 0:
            print(f"iteration={iteration} cost={row['cost']:.6f}")
        if args.save_every > 0 and state["iteration"] % args.save_every == 0:
            _checkpoint()
        if on_iteration is not None:
            on_iteration(row, updated)

    try:
        fit(
            params,
            inputs,
            outputs,
            iterations=args.iterations,
            eps=args.eps,
            rate=args.rate,
            start_iteration=start_iteration,
            on_iteration=_on_iteration,
        )
    except KeyboardInterrupt:
        print("Interrupted by user, saving checkpoint...")
    finally:
        _checkpoint()
        print(f"final cost={cost(state['params'], inputs, outputs):.6f}")
        print(format_params(state["params"]), end="")
        print(f"Checkpoint saved to {args.checkpoint_path}")
        print(f"Dashboard updated at {args.dashboard_path}")
        print(f"Metrics CSV updated at {args.metrics_csv_path}")
    return state["params"]


def run(args: argparse.Namespace) -> None:
    run_with_callbacks(args)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Train a sigmoid network with finite-difference gradients")
    parser.add_argument(
        "--dataset",
        type=str,
        default="xor",
        help="Built-in truth table (xor, or, and, nand) or path to a JSON sample file",
    )
    parser.add_argument("--structure", type=str, default="2,2,1", help="Comma-separated layer widths")
    parser.add_argument("--iterations", type=int, default=10000)
    parser.add_argument("--eps", type=float, default=1e-1)
    parser.add_argument("--rate", type=float, default=1.0)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--init-low", type=float, default=0.0)
    parser.add_argument("--init-high", type=float, default=1.0)
    parser.add_argument("--log-every", type=int, default=1)
    parser.add_argument("--save-every", type=int, default=1000)
    parser.add_argument("--checkpoint-path", type=str, default="artifacts/fdnet.ckpt")
    parser.add_argument("--metrics-csv-path", type=str, default="artifacts/metrics.csv")
    parser.add_argument("--dashboard-path", type=str, default="artifacts/dashboard.html")
    parser.add_argument("--resume", action="store_true")
    return parser


def main() -> None:
    run(build_parser().parse_args())


if __name__ == "__main__":
    main()
