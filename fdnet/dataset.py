from __future__ import annotations

import json
import math
import numbers
from dataclasses import dataclass
from pathlib import Path

_TRUTH_INPUTS = [(0.0, 0.0), (0.0, 1.0), (1.0, 0.0), (1.0, 1.0)]
_TRUTH_TABLES = {
    "xor": [0.0, 1.0, 1.0, 0.0],
    "or": [0.0, 1.0, 1.0, 1.0],
    "and": [0.0, 0.0, 0.0, 1.0],
    "nand": [1.0, 1.0, 1.0, 0.0],
}
BUILTIN_DATASETS = sorted(_TRUTH_TABLES)


@dataclass
class Sample:
    input: list[float]
    output: list[float]


class TrainingSet:
    def __init__(self) -> None:
        self.items: list[Sample] = []

    def add(self, sample: Sample) -> None:
        self.items.append(sample)

    def __len__(self) -> int:
        return len(self.items)

    @property
    def input_width(self) -> int:
        return len(self.items[0].input) if self.items else 0

    @property
    def output_width(self) -> int:
        return len(self.items[0].output) if self.items else 0

    def as_arrays(self) -> tuple[list[list[float]], list[list[float]]]:
        x = [list(item.input) for item in self.items]
        y = [list(item.output) for item in self.items]
        return x, y


def builtin_dataset(name: str) -> TrainingSet:
    key = name.lower()
    if key not in _TRUTH_TABLES:
        raise ValueError(f"Unknown dataset: {name} (expected one of {', '.join(BUILTIN_DATASETS)})")
    samples = TrainingSet()
    for (a, b), target in zip(_TRUTH_INPUTS, _TRUTH_TABLES[key]):
        samples.add(Sample(input=[a, b], output=[target]))
    return samples


def _as_vector(value: object, field: str, idx: int) -> list[float]:
    if not isinstance(value, list) or not value:
        raise ValueError(f"Record {idx}: '{field}' must be a non-empty array of numbers")
    out = []
    for v in value:
        if not isinstance(v, numbers.Real) or isinstance(v, bool):
            raise ValueError(f"Record {idx}: '{field}' contains non-numeric value {v!r}")
        try:
            number = float(v)
        except OverflowError as e:
            raise ValueError(f"Record {idx}: '{field}' value is too large for a float") from e
        if not math.isfinite(number):
            raise ValueError(f"Record {idx}: '{field}' contains non-finite value {v!r}")
        out.append(number)
    return out


def parse_samples(records: object) -> TrainingSet:
    """Validate decoded JSON records and collect them into a rectangular training set."""
    if not isinstance(records, list):
        raise ValueError("Training data must be a JSON array of records")
    if not records:
        raise ValueError("Training data contains no records")

    samples = TrainingSet()
    for idx, record in enumerate(records):
        if not isinstance(record, dict):
            raise ValueError(f"Record {idx} is not an object")
        for field in ("input", "output"):
            if field not in record:
                raise ValueError(f"Record {idx} is missing '{field}'")
        sample = Sample(
            input=_as_vector(record["input"], "input", idx),
            output=_as_vector(record["output"], "output", idx),
        )
        if samples.items:
            if len(sample.input) != samples.input_width:
                raise ValueError(
                    f"Record {idx}: input has {len(sample.input)} values, expected {samples.input_width}"
                )
            if len(sample.output) != samples.output_width:
                raise ValueError(
                    f"Record {idx}: output has {len(sample.output)} values, expected {samples.output_width}"
                )
        samples.add(sample)
    return samples


def load_samples(path: str) -> TrainingSet:
    with open(path, encoding="utf-8") as f:
        records = json.load(f)
    return parse_samples(records)


def resolve_dataset(spec: str) -> TrainingSet:
    if spec.lower() in _TRUTH_TABLES:
        return builtin_dataset(spec)
    if Path(spec).is_file():
        return load_samples(spec)
    raise ValueError(f"Dataset {spec!r} is neither a built-in ({', '.join(BUILTIN_DATASETS)}) nor a file")
