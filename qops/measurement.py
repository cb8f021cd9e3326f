# qops/measurement.py
from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from . import gates as g
from .errors import InvalidParameter, MeasurementError
from .register import QuantumRegister, _rng

logger = logging.getLogger(__name__)

# Pauli matrices for expectation values
_P = {"I": g.I2, "X": g.X, "Y": g.Y, "Z": g.Z}


class MeasurementBasis(Enum):
    COMPUTATIONAL = "computational"
    X = "x"
    Y = "y"
    BELL = "bell"


@dataclass(frozen=True)
class MeasurementResult:
    """One single-shot outcome; ``bitstring[0]`` belongs to ``qubits[0]``."""
    qubits: Tuple[int, ...]
    outcome: int
    bitstring: str
    probability: float
    basis: MeasurementBasis = MeasurementBasis.COMPUTATIONAL

    def as_bools(self) -> List[bool]:
        return [c == "1" for c in self.bitstring]


@dataclass
class MeasurementStatistics:
    shots: int
    counts: Dict[str, int]
    qubits: Tuple[int, ...]
    basis: MeasurementBasis = MeasurementBasis.COMPUTATIONAL

    def probabilities(self) -> Dict[str, float]:
        return {k: v / self.shots for k, v in self.counts.items()}

    def probability(self, bitstring: str) -> float:
        return self.counts.get(bitstring, 0) / self.shots

    def most_frequent(self) -> Optional[Tuple[str, int]]:
        if not self.counts:
            return None
        key = max(self.counts, key=self.counts.get)
        return key, self.counts[key]

    def entropy(self) -> float:
        """Shannon entropy of the observed distribution, in bits."""
        return -sum(p * math.log2(p) for p in self.probabilities().values() if p > 0)

    def histogram(self, width: int = 40) -> str:
        peak = max(self.counts.values(), default=1)
        lines = []
        for outcome in sorted(self.counts):
            count = self.counts[outcome]
            bar = "#" * int(count / peak * width)
            lines.append(f"{outcome}: {bar} {100 * count / self.shots:.2f}% ({count})")
        return "\n".join(lines)


def _bits(local: int, width: int) -> str:
    return format(local, f"0{width}b") if width else ""


def _check_qubits(register: QuantumRegister, qubits: Sequence[int]) -> Tuple[int, ...]:
    return tuple(register._idx(q) for q in qubits)


def extract(index: int, qubits: Sequence[int]) -> int:
    """Local outcome of ``qubits`` in basis state ``index``; ``qubits[0]`` is the MSB."""
    local = 0
    for q in qubits:
        local = (local << 1) | ((index >> q) & 1)
    return local


def measure_qubits(register: QuantumRegister, qubits: Sequence[int], shots: int,
                   rng: Optional[np.random.Generator] = None) -> MeasurementStatistics:
    """Sample ``shots`` full-register outcomes and project them onto ``qubits``.

    Non-mutating.  Bitstrings put ``qubits[0]`` leftmost, the same ordering the
    gate engine uses for multi-qubit targets.
    """
    qs = _check_qubits(register, qubits)
    if shots < 1:
        raise MeasurementError(f"shots must be >= 1, got {shots}")
    counts: Dict[str, int] = {}
    for idx in register.state.sample_indices(shots, rng):
        key = _bits(extract(int(idx), qs), len(qs))
        counts[key] = counts.get(key, 0) + 1
    logger.debug("sampled %d shots over qubits %s: %d distinct outcomes", shots, qs, len(counts))
    return MeasurementStatistics(shots, counts, qs)


def measure_all(register: QuantumRegister, shots: int,
                rng: Optional[np.random.Generator] = None) -> MeasurementStatistics:
    """Bitstrings come out as ``format(index, '0nb')`` (qubit n-1 leftmost)."""
    return measure_qubits(register, range(register.num_qubits - 1, -1, -1), shots, rng)


def measure_single(register: QuantumRegister, qubit: int,
                   rng: Optional[np.random.Generator] = None,
                   basis: MeasurementBasis = MeasurementBasis.COMPUTATIONAL) -> MeasurementResult:
    """Single-shot collapsing measurement wrapped in a MeasurementResult."""
    (q,) = _check_qubits(register, [qubit])
    p1 = register.probability_of_one(q) / register.state.norm_squared()
    bit = register.measure(q, rng)
    return MeasurementResult((q,), bit, str(bit), p1 if bit else 1.0 - p1, basis)


def measure_x_basis(register: QuantumRegister, qubit: int,
                    rng: Optional[np.random.Generator] = None) -> int:
    register.apply_single_gate(g.h(), qubit)
    return register.measure(qubit, rng)


def measure_y_basis(register: QuantumRegister, qubit: int,
                    rng: Optional[np.random.Generator] = None) -> int:
    register.apply_single_gate(g.sdg(), qubit)
    register.apply_single_gate(g.h(), qubit)
    return register.measure(qubit, rng)


# ---- observables ----
def pauli_operator(pauli: str) -> np.ndarray:
    """Ordered Kronecker product; the first character is the most significant qubit."""
    if not pauli:
        raise InvalidParameter("empty Pauli string")
    full = None
    for ch in pauli.upper():
        if ch not in _P:
            raise InvalidParameter(f"invalid Pauli character: {ch!r}")
        full = _P[ch] if full is None else np.kron(full, _P[ch])
    return full


def _apply_pauli(psi: np.ndarray, pauli: str, n: int) -> np.ndarray:
    out = psi.copy()
    tensor = out.reshape((2,) * n)
    # character k acts on qubit n-1-k, i.e. tensor axis k
    for axis, ch in enumerate(pauli):
        if ch == "I":
            continue
        moved = np.moveaxis(tensor, axis, 0)
        moved[...] = np.tensordot(_P[ch], moved, axes=1)
    return out


def expectation_pauli(register: QuantumRegister, pauli: str) -> float:
    """Real part of <psi|P|psi> for a Pauli string over every qubit."""
    n = register.num_qubits
    if len(pauli) != n:
        raise InvalidParameter(f"Pauli string length {len(pauli)} doesn't match qubit count {n}")
    p = pauli.upper()
    bad = set(p) - set(_P)
    if bad:
        raise InvalidParameter(f"invalid Pauli character(s): {''.join(sorted(bad))}")
    psi = register.amplitudes
    return float(np.vdot(psi, _apply_pauli(psi, p, n)).real)


def variance_pauli(register: QuantumRegister, pauli: str) -> float:
    # Var(P) = 1 - <P>^2 since P^2 = I
    e = expectation_pauli(register, pauli)
    return 1.0 - e * e


# ---- tomography ----
def single_qubit_tomography(prepare: Callable[[], QuantumRegister], shots: int,
                            rng: Optional[np.random.Generator] = None) -> Tuple[float, float, float]:
    """Estimate the Bloch vector (x, y, z) of qubit 0.

    ``prepare`` is called once per basis so every estimate uses a fresh register.
    """
    rng = _rng(rng)

    def z_pop(reg: QuantumRegister) -> float:
        stats = measure_qubits(reg, [0], shots, rng)
        return 2 * stats.probability("0") - 1

    z = z_pop(prepare())
    reg_x = prepare()
    reg_x.apply_single_gate(g.h(), 0)
    x = z_pop(reg_x)
    reg_y = prepare()
    reg_y.apply_single_gate(g.sdg(), 0)
    reg_y.apply_single_gate(g.h(), 0)
    y = z_pop(reg_y)
    return x, y, z


def estimate_purity(bloch: Tuple[float, float, float]) -> float:
    x, y, z = bloch
    return 0.5 * (1 + x * x + y * y + z * z)
