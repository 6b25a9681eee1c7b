"""Random amount distributions used to size populator output."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, Generic, List, Sequence, Tuple, TypeVar, Union

import numpy as np

T = TypeVar("T")


class VariableAmount:
    """A quantity drawn from a random stream."""

    def get_amount(self, rng: np.random.Generator) -> float:
        raise NotImplementedError

    def get_floored_amount(self, rng: np.random.Generator) -> int:
        return int(math.floor(self.get_amount(rng)))

    @staticmethod
    def fixed(value: float) -> "VariableAmount":
        return Fixed(float(value))

    @staticmethod
    def range(low: float, high: float) -> "VariableAmount":
        if high < low:
            raise ValueError("range upper bound cannot be less than lower bound")
        return BaseWithRandomAddition(float(low), Fixed(float(high - low)))

    @staticmethod
    def base_with_variance(base: float, variance: "Amount") -> "VariableAmount":
        return BaseWithVariance(float(base), _coerce(variance))

    @staticmethod
    def base_with_random_addition(base: float, addition: "Amount") -> "VariableAmount":
        return BaseWithRandomAddition(float(base), _coerce(addition))

    @staticmethod
    def base_with_optional_addition(base: float, addition: "Amount", chance: float) -> "VariableAmount":
        return BaseWithOptionalAddition(float(base), _coerce(addition), float(chance))


Amount = Union[VariableAmount, int, float]


def _coerce(value: Amount) -> VariableAmount:
    if isinstance(value, VariableAmount):
        return value
    return Fixed(float(value))


@dataclass(frozen=True)
class Fixed(VariableAmount):
    value: float

    def get_amount(self, rng: np.random.Generator) -> float:
        return self.value


@dataclass(frozen=True)
class BaseWithVariance(VariableAmount):
    """``base`` plus or minus a random share of ``variance``."""

    base: float
    variance: VariableAmount

    def get_amount(self, rng: np.random.Generator) -> float:
        variance = self.variance.get_amount(rng)
        return self.base + float(rng.random()) * variance * 2.0 - variance


@dataclass(frozen=True)
class BaseWithRandomAddition(VariableAmount):
    base: float
    addition: VariableAmount

    def get_amount(self, rng: np.random.Generator) -> float:
        return self.base + float(rng.random()) * self.addition.get_amount(rng)


@dataclass(frozen=True)
class BaseWithOptionalAddition(VariableAmount):
    """``base`` with ``addition`` applied only when a ``chance`` roll succeeds."""

    base: float
    addition: VariableAmount
    chance: float

    def get_amount(self, rng: np.random.Generator) -> float:
        if float(rng.random()) < self.chance:
            return self.base + self.addition.get_amount(rng)
        return self.base


class SeededVariableAmount:
    """An amount that additionally depends on a per-column seed value."""

    def get_amount(self, rng: np.random.Generator, seed: float) -> float:
        raise NotImplementedError

    def get_floored_amount(self, rng: np.random.Generator, seed: float) -> int:
        return int(math.floor(self.get_amount(rng, seed)))

    @staticmethod
    def wrap(amount: Amount) -> "SeededVariableAmount":
        return _Wrapped(_coerce(amount))

    @staticmethod
    def surface_noise_depth() -> "SeededVariableAmount":
        return _SurfaceNoiseDepth()


@dataclass(frozen=True)
class _Wrapped(SeededVariableAmount):
    amount: VariableAmount

    def get_amount(self, rng: np.random.Generator, seed: float) -> float:
        return self.amount.get_amount(rng)


@dataclass(frozen=True)
class _SurfaceNoiseDepth(SeededVariableAmount):
    # Classic filler depth: deeper soil where the surface noise is high.
    def get_amount(self, rng: np.random.Generator, seed: float) -> float:
        return seed / 3.0 + 3.0 + float(rng.random()) * 0.25


@dataclass
class WeightedTable(Generic[T]):
    """Weighted random selection; ``get`` returns one pick per roll."""

    rolls: int = 1
    entries: List[Tuple[T, float]] = field(default_factory=list)

    def add(self, value: T, weight: float) -> "WeightedTable[T]":
        if weight <= 0:
            raise ValueError("weight must be positive")
        self.entries.append((value, float(weight)))
        return self

    @property
    def total_weight(self) -> float:
        return sum(weight for _, weight in self.entries)

    def get(self, rng: np.random.Generator) -> List[T]:
        if not self.entries:
            return []
        results: List[T] = []
        total = self.total_weight
        for _ in range(self.rolls):
            roll = float(rng.random()) * total
            for value, weight in self.entries:
                roll -= weight
                if roll < 0:
                    results.append(value)
                    break
            else:
                results.append(self.entries[-1][0])
        return results

    def values(self) -> Sequence[T]:
        return [value for value, _ in self.entries]


BlockSelector = Callable[[float], int]


__all__ = [
    "Amount",
    "BlockSelector",
    "VariableAmount",
    "SeededVariableAmount",
    "WeightedTable",
]
