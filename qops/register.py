# qops/register.py
"""Dense state-vector engine.

Bit ``b`` of a basis index is qubit ``b``'s value.  Gates are applied in place
by pairing indices over numpy views of the amplitude buffer; no 2^n x 2^n
operator is ever built on the hot path.

Memory is 16 * 2**n bytes per register, plus one scratch buffer of the same
size that the gate kernels allocate on first use and then reuse, so applying a
gate allocates nothing.  ``MAX_QUBITS`` is a soft ceiling: larger registers
are refused rather than left to fail inside numpy.
"""
from __future__ import annotations
import logging
import math
from collections import Counter
from typing import Dict, List, Optional, Sequence

import numpy as np

from .errors import (DimensionMismatch, InvalidParameter, InvalidQubitIndex, InvalidState,
                     MeasurementError, NormalizationError, SameQubitIndex)
from .gates import Gate

logger = logging.getLogger(__name__)

MAX_QUBITS = 28
BYTES_PER_AMPLITUDE = 16
NORM_TOL = 1e-6


def _rng(rng: Optional[np.random.Generator]) -> np.random.Generator:
    return rng if rng is not None else np.random.default_rng()


def _check_size(n: int) -> None:
    if n < 1:
        raise DimensionMismatch(expected=2, actual=1 << n if n >= 0 else 0)
    if n > MAX_QUBITS:
        raise InvalidParameter(
            f"{n} qubits needs {BYTES_PER_AMPLITUDE << n} bytes; limit is {MAX_QUBITS} qubits")


class StateVector:
    def __init__(self, n: int):
        _check_size(n)
        self.n = n
        self.state = np.zeros(1 << n, dtype=np.complex128)
        self.state[0] = 1 + 0j

    # ---- constructors ----
    @classmethod
    def from_amplitudes(cls, amplitudes: Sequence[complex], normalize: bool = True) -> "StateVector":
        amps = np.array(amplitudes, dtype=np.complex128).ravel()
        dim = amps.size
        if dim < 2 or dim & (dim - 1):
            raise InvalidState(f"amplitude count {dim} is not a power of two >= 2")
        sv = cls.__new__(cls)
        sv.n = dim.bit_length() - 1
        _check_size(sv.n)
        sv.state = amps
        norm = sv.norm_squared()
        if norm < 1e-15:
            raise NormalizationError(math.sqrt(norm))
        if normalize:
            sv.normalize()
        return sv

    @classmethod
    def basis_state(cls, n: int, index: int) -> "StateVector":
        sv = cls(n)
        if not 0 <= index < sv.dimension:
            raise InvalidParameter(f"basis index {index} out of range for {n} qubits")
        sv.state[0] = 0
        sv.state[index] = 1
        return sv

    @classmethod
    def uniform_superposition(cls, n: int) -> "StateVector":
        sv = cls(n)
        sv.state[:] = 1 / math.sqrt(sv.dimension)
        return sv

    # ---- inspection ----
    @property
    def dimension(self) -> int:
        return self.state.size

    def amplitude(self, index: int) -> complex:
        return complex(self.state[index]) if 0 <= index < self.dimension else 0j

    def probabilities(self) -> np.ndarray:
        return self.state.real**2 + self.state.imag**2

    def probability(self, index: int) -> float:
        return abs(self.amplitude(index)) ** 2

    def norm_squared(self) -> float:
        return float(np.vdot(self.state, self.state).real)

    def is_normalized(self, tol: float = 1e-10) -> bool:
        return abs(self.norm_squared() - 1.0) < tol

    def check_normalized(self, tol: float = NORM_TOL) -> None:
        norm = self.norm_squared()
        if abs(norm - 1.0) > tol:
            raise NormalizationError(math.sqrt(norm))

    def inner_product(self, other: "StateVector") -> complex:
        if other.dimension != self.dimension:
            raise DimensionMismatch(self.dimension, other.dimension)
        return complex(np.vdot(self.state, other.state))

    def fidelity(self, other: "StateVector") -> float:
        return abs(self.inner_product(other)) ** 2

    def copy(self) -> "StateVector":
        sv = self.__class__.__new__(self.__class__)
        sv.n, sv.state = self.n, self.state.copy()
        return sv

    # ---- mutation ----
    def normalize(self) -> None:
        norm = math.sqrt(self.norm_squared())
        if norm > 1e-15:
            self.state /= norm
        else:
            logger.warning("normalize skipped: state norm %.3e is degenerate", norm)

    def set_amplitudes(self, amplitudes: Sequence[complex]) -> None:
        amps = np.asarray(amplitudes, dtype=np.complex128).ravel()
        if amps.size != self.dimension:
            raise DimensionMismatch(self.dimension, amps.size)
        self.state[:] = amps
        self.normalize()

    def _scratch(self) -> np.ndarray:
        buf = getattr(self, "_buf", None)
        if buf is None or buf.size != self.state.size:
            buf = self._buf = np.empty_like(self.state)
        return buf

    def apply_single(self, q: int, U: np.ndarray) -> None:
        # view (high, bit q, low): [:, 0, :] and [:, 1, :] are the index pairs i0, i1
        view = self.state.reshape(-1, 2, 1 << q)
        tmp = self._scratch().reshape(view.shape)
        v0, v1 = view[:, 0, :], view[:, 1, :]
        t0, t1 = tmp[:, 0, :], tmp[:, 1, :]
        np.multiply(v1, U[0, 1], out=t0)
        np.multiply(v0, U[1, 0], out=t1)
        v0 *= U[0, 0]; v0 += t0
        v1 *= U[1, 1]; v1 += t1

    def apply_local(self, targets: Sequence[int], U: np.ndarray) -> None:
        """Apply a 2^k x 2^k matrix to ``targets`` (first target = local MSB)."""
        k = len(targets)
        tensor = self.state.reshape((2,) * self.n)
        # qubit b lives on axis n-1-b of the C-ordered tensor
        axes = [self.n - 1 - q for q in targets]
        moved = np.moveaxis(tensor, axes, range(k))
        src = self._scratch().reshape(moved.shape)
        np.copyto(src, moved)
        letters = "abcdefghijklmnop"
        rows, cols = letters[:k], letters[k:2 * k]
        np.einsum(f"{rows}{cols},{cols}...->{rows}...", U.reshape((2,) * (2 * k)), src, out=moved)

    def apply_matrix(self, matrix: np.ndarray) -> None:
        """Dense fallback: multiply by a full 2^n x 2^n operator (small n only)."""
        m = np.asarray(matrix, dtype=np.complex128)
        if m.shape != (self.dimension, self.dimension):
            raise DimensionMismatch(self.dimension, m.shape[0] if m.ndim else 0)
        self.state[:] = m @ self.state

    def collapse(self, qubit: int, outcome: int) -> float:
        """Project onto ``qubit == outcome`` and renormalise; returns the branch probability."""
        view = self.state.reshape(-1, 2, 1 << qubit)
        kept = view[:, outcome, :]
        p = float(np.vdot(kept, kept).real)
        if p < 1e-15:
            raise MeasurementError(f"outcome {outcome} on qubit {qubit} has zero probability")
        view[:, 1 - outcome, :] = 0
        self.state /= math.sqrt(p)
        return p

    def marginal_one(self, qubit: int) -> float:
        ones = self.state.reshape(-1, 2, 1 << qubit)[:, 1, :]
        return float(np.vdot(ones, ones).real)

    def sample_indices(self, shots: int, rng: Optional[np.random.Generator] = None) -> np.ndarray:
        probs = self.probabilities()
        cum = np.cumsum(probs)
        total = cum[-1]
        if total < 1e-15:
            raise MeasurementError("cannot sample from a zero-norm state")
        u = _rng(rng).random(shots) * total
        # first index whose cumulative probability exceeds u
        idx = np.searchsorted(cum, u, side="right")
        return np.minimum(idx, np.flatnonzero(probs)[-1])

    def sample_all(self, shots: int, rng: Optional[np.random.Generator] = None) -> Counter:
        counts: Counter = Counter()
        for idx in self.sample_indices(shots, rng):
            counts[format(int(idx), f"0{self.n}b")] += 1
        return counts


class QuantumRegister:
    """A StateVector plus classical bits and a gate log."""

    def __init__(self, n: int):
        self.state = StateVector(n)
        self.classical_bits: List[int] = [0] * n
        self.gate_history: List[str] = []
        logger.debug("allocated %d-qubit register (%d bytes)", n, BYTES_PER_AMPLITUDE << n)

    @classmethod
    def from_state(cls, state: StateVector) -> "QuantumRegister":
        reg = cls.__new__(cls)
        reg.state = state
        reg.classical_bits = [0] * state.n
        reg.gate_history = []
        return reg

    @property
    def num_qubits(self) -> int:
        return self.state.n

    @property
    def amplitudes(self) -> np.ndarray:
        return self.state.state

    def reset(self) -> None:
        self.state = StateVector(self.num_qubits)
        self.classical_bits = [0] * self.num_qubits
        self.gate_history.clear()

    # ---- validation ----
    def _idx(self, q: int) -> int:
        if isinstance(q, bool) or not isinstance(q, (int, np.integer)):
            raise InvalidParameter(f"qubit index must be an int, got {q!r}")
        if not 0 <= q < self.num_qubits:
            raise InvalidQubitIndex(int(q), self.num_qubits)
        return int(q)

    def _targets(self, gate: Gate, qubits: Sequence[int]) -> List[int]:
        if gate.num_qubits != len(qubits):
            raise InvalidParameter(
                f"gate '{gate.name}' acts on {gate.num_qubits} qubit(s), got {len(qubits)} target(s)")
        targets = [self._idx(q) for q in qubits]
        for i, a in enumerate(targets):
            for b in targets[i + 1:]:
                if a == b:
                    raise SameQubitIndex(a, b)
        return targets

    # ---- gate application ----
    def apply_single_gate(self, gate: Gate, qubit: int) -> None:
        (q,) = self._targets(gate, [qubit])
        self.state.apply_single(q, gate.matrix)
        self.gate_history.append(f"{gate}({q})")

    def apply_two_qubit_gate(self, gate: Gate, q0: int, q1: int) -> None:
        if gate.num_qubits != 2:
            raise InvalidParameter(f"expected a two-qubit gate, got {gate.num_qubits}-qubit '{gate.name}'")
        targets = self._targets(gate, [q0, q1])
        self.state.apply_local(targets, gate.matrix)
        self.gate_history.append(f"{gate}({targets[0]},{targets[1]})")

    def apply_gate(self, gate: Gate, qubits: Sequence[int]) -> None:
        targets = self._targets(gate, qubits)
        if len(targets) == 1:
            self.state.apply_single(targets[0], gate.matrix)
        else:
            self.state.apply_local(targets, gate.matrix)
        self.gate_history.append(f"{gate}({','.join(map(str, targets))})")

    def condition_met(self, condition) -> bool:
        """True when ``condition`` is None or its classical bit holds the expected value."""
        if condition is None:
            return True
        if not 0 <= condition.bit < len(self.classical_bits):
            raise InvalidParameter(
                f"classical bit {condition.bit} out of range for {len(self.classical_bits)} bit(s)")
        return self.classical_bits[condition.bit] == condition.value

    def apply_circuit(self, circuit) -> None:
        """Replay ``circuit``; the first bad instruction raises and nothing is rolled back.

        Conditioned instructions run only when ``classical_bits`` matches.
        """
        logger.debug("applying circuit '%s' (%d instructions)", circuit.name, len(circuit))
        for ins in circuit.instructions:
            if not self.condition_met(ins.condition):
                logger.debug("skipping %s: condition %s not met", ins.gate, ins.condition)
                continue
            self.apply_gate(ins.gate, ins.qubits)

    # ---- probabilities / measurement ----
    def probabilities(self) -> np.ndarray:
        return self.state.probabilities()

    def probability_of_one(self, qubit: int) -> float:
        return self.state.marginal_one(self._idx(qubit))

    def measure(self, qubit: int, rng: Optional[np.random.Generator] = None) -> int:
        """Projective single-shot measurement; collapses the state."""
        q = self._idx(qubit)
        p1 = self.state.marginal_one(q) / self.state.norm_squared()
        outcome = int(_rng(rng).random() < p1)
        self.state.collapse(q, outcome)
        self.classical_bits[q] = outcome
        logger.debug("measured qubit %d -> %d (p1=%.6f)", q, outcome, p1)
        return outcome

    def measure_all(self, rng: Optional[np.random.Generator] = None) -> List[int]:
        """Collapse every qubit; returns bits indexed by qubit."""
        idx = int(self.state.sample_indices(1, rng)[0])
        bits = [(idx >> q) & 1 for q in range(self.num_qubits)]
        self.state.state[:] = 0
        self.state.state[idx] = 1
        self.classical_bits = list(bits)
        return bits

    def sample(self, shots: int, rng: Optional[np.random.Generator] = None) -> List[List[int]]:
        return [[(int(i) >> q) & 1 for q in range(self.num_qubits)]
                for i in self.state.sample_indices(shots, rng)]

    def get_counts(self, shots: int, rng: Optional[np.random.Generator] = None) -> Dict[str, int]:
        return dict(self.state.sample_all(shots, rng))

    def state_string(self, tol: float = 1e-10) -> str:
        terms = []
        for i, amp in enumerate(self.state.state):
            if abs(amp) ** 2 > tol:
                terms.append(f"({amp:.4f})|{i:0{self.num_qubits}b}>")
        return " + ".join(terms)

    def __str__(self) -> str:
        return self.state_string()
