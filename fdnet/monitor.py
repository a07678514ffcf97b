from __future__ import annotations

import csv
import html
import json
import os
import pickle
from pathlib import Path

from .nn import ModelParams


def save_checkpoint(
    path: str,
    *,
    iteration: int,
    params: ModelParams,
    history: list[dict[str, float]],
    config: dict | None = None,
) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "iteration": iteration,
        "params": params.to_payload(),
        "history": history,
        "config": config or {},
    }
    with open(path, "wb") as f:
        pickle.dump(payload, f)


def load_checkpoint(path: str) -> dict:
    with open(path, "rb") as f:
        return pickle.load(f)


def load_params_from_ckpt(path: str) -> ModelParams:
    payload = load_checkpoint(path)
    return ModelParams.from_payload(payload["params"])


def write_history_csv(path: str, history: list[dict[str, float]]) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    fields = ["iteration", "cost"]
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fields)
        writer.writeheader()
        for row in history:
            out = {name: row.get(name, 0.0) for name in fields}
            out["iteration"] = int(out["iteration"])
            writer.writerow(out)


def _line_svg(values: list[float], *, width: int = 560, height: int = 180, color: str = "#4f46e5") -> str:
    if not values:
        return ""
    lo = min(values)
    hi = max(values)
    span = hi - lo if hi != lo else 1.0
    points = []
    for idx, value in enumerate(values):
        x = (idx / max(1, len(values) - 1)) * (width - 10) + 5
        y = height - (((value - lo) / span) * (height - 20) + 10)
        points.append(f"{x:.2f},{y:.2f}")
    return (
        f'<svg width="{width}" height="{height}" viewBox="0 0 {width} {height}">'
        f'<rect x="0" y="0" width="{width}" height="{height}" fill="#f8fafc" stroke="#cbd5e1"/>'
        f'<polyline fill="none" stroke="{color}" stroke-width="2" points="{" ".join(points)}"/>'
        "</svg>"
    )


def _downsample(values: list[float], limit: int = 1000) -> list[float]:
    if len(values) <= limit:
        return values
    stride = -(-len(values) // limit)
    picked = values[::stride]
    if (len(values) - 1) % stride:
        picked.append(values[-1])
    return picked


def write_dashboard(path: str, history: list[dict[str, float]], structure: list[int]) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    latest = history[-1] if history else None
    cost_svg = _line_svg(_downsample([row["cost"] for row in history]), color="#16a34a")

    rows = "\n".join(
        f"<tr><td>{int(row['iteration'])}</td><td>{row['cost']:.6f}</td></tr>" for row in history[-30:]
    )

    latest_block = "no data yet"
    if latest:
        latest_block = f"iteration={int(latest['iteration'])} cost={latest['cost']:.6f}"
    first_block = ""
    if history:
        first_block = f"initial cost={history[0]['cost']:.6f}"

    shape = html.escape(json.dumps(structure))

    content = f"""<!doctype html>
<html lang=\"en\">
<head>
  <meta charset=\"utf-8\" />
  <meta http-equiv=\"refresh\" content=\"3\" />
  <title>fdnet Training Dashboard</title>
  <style>
    body {{ font-family: Arial, sans-serif; margin: 24px; }}
    table {{ border-collapse: collapse; width: 100%; }}
    th, td {{ border: 1px solid #ddd; padding: 6px 8px; font-size: 13px; }}
    th {{ background: #f1f5f9; }}
    .meta {{ margin-bottom: 16px; color: #334155; }}
  </style>
</head>
<body>
  <h1>Finite-difference training</h1>
  <div class=\"meta\">Latest: {latest_block}</div>
  <div class=\"meta\">{first_block}</div>
  <div class=\"meta\">Structure: {shape}</div>
  <h3>Cost</h3>
  {cost_svg}
  <h3>Last 30 iterations</h3>
  <table>
    <thead>
      <tr><th>iteration</th><th>cost</th></tr>
    </thead>
    <tbody>
      {rows}
    </tbody>
  </table>
</body>
</html>
"""
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)


def checkpoint_exists(path: str) -> bool:
    return os.path.exists(path)
