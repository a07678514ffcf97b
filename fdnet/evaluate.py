from __future__ import annotations

import argparse
from pathlib import Path

from .dataset import resolve_dataset
from .monitor import load_params_from_ckpt
from .nn import cost, forward
from .render import format_params


def _fmt(values: list[float]) -> str:
    return "[" + ", ".join(f"{v:.4f}" for v in values) + "]"


def build_report(checkpoint_path: str, dataset: str) -> str:
    params = load_params_from_ckpt(checkpoint_path)
    samples = resolve_dataset(dataset)
    inputs, outputs = samples.as_arrays()

    lines = []
    for x, y in zip(inputs, outputs):
        lines.append(f"input={_fmt(x)} target={_fmt(y)} output={_fmt(forward(params, x))}")
    lines.append(f"cost={cost(params, inputs, outputs):.6f}")
    return "\n".join(lines) + "\n" + format_params(params)


def run(args: argparse.Namespace) -> None:
    report = build_report(args.checkpoint_path, args.dataset)
    print(report, end="")

    if args.report_path:
        Path(args.report_path).parent.mkdir(parents=True, exist_ok=True)
        Path(args.report_path).write_text(report, encoding="utf-8")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Evaluate a trained network on a dataset")
    parser.add_argument("--checkpoint-path", type=str, default="artifacts/fdnet.ckpt")
    parser.add_argument("--dataset", type=str, default="xor")
    parser.add_argument("--report-path", type=str, default="")
    return parser


def main() -> None:
    run(build_parser().parse_args())


if __name__ == "__main__":
    main()
