# qops/qubit.py
from __future__ import annotations
import math, cmath
from dataclasses import dataclass
from typing import Tuple

import numpy as np

_SQRT1_2 = 1 / math.sqrt(2)


@dataclass(frozen=True)
class BlochCoordinates:
    theta: float  # polar angle in [0, pi]
    phi: float    # azimuth in [0, 2pi)

    def to_cartesian(self) -> Tuple[float, float, float]:
        st = math.sin(self.theta)
        return st * math.cos(self.phi), st * math.sin(self.phi), math.cos(self.theta)

    @classmethod
    def from_cartesian(cls, x: float, y: float, z: float) -> "BlochCoordinates":
        theta = math.acos(max(-1.0, min(1.0, z)))
        return cls(theta, _wrap_phase(math.atan2(y, x)))


def _wrap_phase(phi: float) -> float:
    phi %= math.tau
    # a tiny negative phi rounds up to exactly tau
    return 0.0 if phi >= math.tau else phi


@dataclass
class Qubit:
    """Single-qubit state alpha|0> + beta|1>.

    A diagnostic value type; the register keeps its own amplitude buffer and
    never holds Qubit objects.
    """
    alpha: complex = 1 + 0j
    beta: complex = 0j

    def __post_init__(self):
        self.alpha, self.beta = complex(self.alpha), complex(self.beta)

    # ---- canonical states ----
    @classmethod
    def zero(cls) -> "Qubit": return cls(1, 0)
    @classmethod
    def one(cls) -> "Qubit": return cls(0, 1)
    @classmethod
    def plus(cls) -> "Qubit": return cls(_SQRT1_2, _SQRT1_2)
    @classmethod
    def minus(cls) -> "Qubit": return cls(_SQRT1_2, -_SQRT1_2)
    @classmethod
    def plus_i(cls) -> "Qubit": return cls(_SQRT1_2, 1j * _SQRT1_2)
    @classmethod
    def minus_i(cls) -> "Qubit": return cls(_SQRT1_2, -1j * _SQRT1_2)

    # ---- Bloch sphere ----
    @classmethod
    def from_bloch(cls, theta: float, phi: float) -> "Qubit":
        return cls(math.cos(theta / 2), cmath.rect(math.sin(theta / 2), phi))

    @classmethod
    def from_coordinates(cls, coords: BlochCoordinates) -> "Qubit":
        return cls.from_bloch(coords.theta, coords.phi)

    def to_bloch(self) -> BlochCoordinates:
        # strip the global phase carried by alpha
        rot = cmath.rect(1.0, -cmath.phase(self.alpha))
        a, b = self.alpha * rot, self.beta * rot
        theta = 2 * math.acos(max(-1.0, min(1.0, a.real)))
        return BlochCoordinates(theta, _wrap_phase(cmath.phase(b)))

    # ---- probabilities / norms ----
    def prob_zero(self) -> float:
        return abs(self.alpha) ** 2

    def prob_one(self) -> float:
        return abs(self.beta) ** 2

    def normalize(self) -> "Qubit":
        """Rescale to unit norm; a (near) zero vector is left untouched."""
        norm = math.sqrt(self.prob_zero() + self.prob_one())
        if norm > 1e-10:
            self.alpha /= norm
            self.beta /= norm
        return self

    def is_normalized(self, tol: float = 1e-10) -> bool:
        return abs(self.prob_zero() + self.prob_one() - 1.0) < tol

    def inner_product(self, other: "Qubit") -> complex:
        return self.alpha.conjugate() * other.alpha + self.beta.conjugate() * other.beta

    def fidelity(self, other: "Qubit") -> float:
        return abs(self.inner_product(other)) ** 2

    def to_vector(self) -> np.ndarray:
        return np.array([self.alpha, self.beta], dtype=np.complex128)

    def __str__(self) -> str:
        return f"({self.alpha:.4f})|0> + ({self.beta:.4f})|1>"
