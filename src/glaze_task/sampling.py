from __future__ import annotations

from typing import Sequence, TypeVar

import numpy as np

from .constants import ALLOWED_SIGMA_LEVELS


T = TypeVar("T")


def resolve_rng(rng: np.random.Generator | int | None = None) -> np.random.Generator:
    """Return a NumPy generator from a generator, an integer seed, or `None`."""
    if isinstance(rng, np.random.Generator):
        return rng
    if rng is None:
        return np.random.default_rng()
    if isinstance(rng, (int, np.integer)) and not isinstance(rng, bool):
        return np.random.default_rng(int(rng))
    raise TypeError(
        f"rng must be a numpy Generator, an integer seed, or None; got {type(rng).__name__}."
    )


def _open_uniform(rng: np.random.Generator) -> float:
    """Draw from U(0, 1), redrawing exact zeros."""
    u = float(rng.random())
    while u == 0.0:
        u = float(rng.random())
    return u


def box_muller_pair(rng: np.random.Generator) -> tuple[float, float]:
    """Transform two independent uniforms into two independent standard normals."""
    u = _open_uniform(rng)
    v = _open_uniform(rng)
    radius = np.sqrt(-2.0 * np.log(u))
    angle = 2.0 * np.pi * v
    return float(radius * np.cos(angle)), float(radius * np.sin(angle))


class BoxMullerNormal:
    """Standard-normal source backed by Box-Muller pairs.

    Each transform yields two draws; the second one is kept and returned by
    the next call.
    """

    def __init__(self, rng: np.random.Generator):
        self.rng = rng
        self._spare: float | None = None

    def draw(self) -> float:
        if self._spare is not None:
            value, self._spare = self._spare, None
            return value
        value, self._spare = box_muller_pair(self.rng)
        return value


def fisher_yates_shuffle(values: Sequence[T], rng: np.random.Generator) -> list[T]:
    """Return a uniformly shuffled copy of `values`."""
    shuffled = list(values)
    for i in range(len(shuffled) - 1, 0, -1):
        j = int(rng.integers(0, i + 1))
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def draw_session_sigma(
    rng: np.random.Generator | int | None = None,
    levels: Sequence[float] = ALLOWED_SIGMA_LEVELS,
) -> float:
    """Pick a session noise ratio uniformly from the allowed levels."""
    if len(levels) == 0:
        raise ValueError("levels must not be empty.")
    generator = resolve_rng(rng)
    return float(levels[int(generator.integers(0, len(levels)))])
