# qops/noise.py
"""Noise channels applied straight to the state vector.

This is a pure-state approximation, not density-matrix simulation:
stochastic channels pick one Pauli (or one random Rz) per trial, and
amplitude damping moves |1> amplitude into |0> deterministically and then
renormalises the ket instead of summing Kraus branches.
"""
from __future__ import annotations
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

import numpy as np

from . import gates as g
from .errors import InvalidParameter, NormalizationError
from .register import QuantumRegister, _rng

logger = logging.getLogger(__name__)


class NoiseChannel(Enum):
    DEPOLARIZING = "depolarizing"
    AMPLITUDE_DAMPING = "amplitude_damping"
    PHASE_DAMPING = "phase_damping"
    BIT_FLIP = "bit_flip"
    PHASE_FLIP = "phase_flip"
    THERMAL_RELAXATION = "thermal_relaxation"
    READOUT_ERROR = "readout_error"


def _probability(name: str, p: float) -> float:
    if not 0.0 <= p <= 1.0:
        raise InvalidParameter(f"{name} must be in [0, 1], got {p}")
    return float(p)


def _relaxation_times(t1: float, t2: float, gate_time: float) -> None:
    for name, value in (("t1", t1), ("t2", t2)):
        if not value > 0:
            raise InvalidParameter(f"{name} must be positive, got {value}")
    if not gate_time >= 0:
        raise InvalidParameter(f"gate_time must be >= 0, got {gate_time}")


# ---- channel kernels ----
def depolarize(register: QuantumRegister, qubit: int, p: float,
               rng: Optional[np.random.Generator] = None) -> Optional[str]:
    """With probability p apply X, Y or Z (uniformly); returns the Pauli applied."""
    _probability("p", p)
    register._idx(qubit)
    rng = _rng(rng)
    if rng.random() >= p:
        return None
    pauli = ("x", "y", "z")[int(rng.integers(3))]
    register.apply_single_gate(g.fixed_gate(pauli), qubit)
    logger.debug("depolarizing: %s on qubit %d", pauli, qubit)
    return pauli


def bit_flip(register: QuantumRegister, qubit: int, p: float,
             rng: Optional[np.random.Generator] = None) -> bool:
    _probability("p", p)
    register._idx(qubit)
    if _rng(rng).random() < p:
        register.apply_single_gate(g.x(), qubit)
        return True
    return False


def phase_flip(register: QuantumRegister, qubit: int, p: float,
               rng: Optional[np.random.Generator] = None) -> bool:
    _probability("p", p)
    register._idx(qubit)
    if _rng(rng).random() < p:
        register.apply_single_gate(g.z(), qubit)
        return True
    return False


def amplitude_damp(register: QuantumRegister, qubit: int, gamma: float) -> None:
    """amp[i0] += sqrt(gamma) * amp[i1]; amp[i1] *= sqrt(1 - gamma); then renormalise.

    Raises NormalizationError, leaving the state as it was, when the damped
    vector vanishes (gamma = 1 on a state like |->).
    """
    _probability("gamma", gamma)
    q = register._idx(qubit)
    view = register.amplitudes.reshape(-1, 2, 1 << q)
    v0, v1 = view[:, 0, :], view[:, 1, :]
    k0, k1 = math.sqrt(gamma), math.sqrt(1.0 - gamma)
    n0 = np.sum(np.abs(v0 + k0 * v1) ** 2)
    n1 = (1.0 - gamma) * np.sum(np.abs(v1) ** 2)
    norm = math.sqrt(float(n0 + n1))
    if norm <= 1e-15:
        raise NormalizationError(norm)
    v0 += k0 * v1
    v1 *= k1
    register.amplitudes[:] /= norm


def phase_damp(register: QuantumRegister, qubit: int, gamma: float,
               rng: Optional[np.random.Generator] = None) -> Optional[float]:
    """With probability gamma apply Rz(angle), angle uniform in [0, pi)."""
    _probability("gamma", gamma)
    register._idx(qubit)
    rng = _rng(rng)
    if rng.random() >= gamma:
        return None
    angle = float(rng.random() * math.pi)
    register.apply_single_gate(g.rz(angle), qubit)
    return angle


def pure_dephasing(t1: float, t2: float, gate_time: float) -> float:
    _relaxation_times(t1, t2, gate_time)
    if t2 < 2 * t1:
        return 1.0 - math.exp(-(gate_time / t2 - gate_time / (2 * t1)))
    return 0.0


def thermal_relax(register: QuantumRegister, qubit: int, t1: float, t2: float,
                  gate_time: float, rng: Optional[np.random.Generator] = None) -> None:
    _relaxation_times(t1, t2, gate_time)
    register._idx(qubit)
    gamma1 = 1.0 - math.exp(-gate_time / t1)
    amplitude_damp(register, qubit, gamma1)
    phase_damp(register, qubit, pure_dephasing(t1, t2, gate_time), rng)


@dataclass
class NoiseModel:
    single_gate_error: float = 0.001
    two_gate_error: float = 0.01
    measurement_error: float = 0.01
    t1: float = 50.0
    t2: float = 30.0
    single_gate_time: float = 0.05
    two_gate_time: float = 0.3
    channels: List[NoiseChannel] = field(default_factory=lambda: [NoiseChannel.DEPOLARIZING])

    def __post_init__(self):
        for name in ("single_gate_error", "two_gate_error", "measurement_error"):
            _probability(name, getattr(self, name))
        for name in ("t1", "t2"):
            if not getattr(self, name) > 0:
                raise InvalidParameter(f"{name} must be positive, got {getattr(self, name)}")
        for name in ("single_gate_time", "two_gate_time"):
            if getattr(self, name) < 0:
                raise InvalidParameter(f"{name} must be >= 0, got {getattr(self, name)}")
        self.channels = [NoiseChannel(c) for c in self.channels]

    # ---- presets ----
    @classmethod
    def ideal(cls) -> "NoiseModel":
        return cls(0.0, 0.0, 0.0, math.inf, math.inf, 0.0, 0.0, [])

    @classmethod
    def default(cls) -> "NoiseModel":
        return cls()

    @classmethod
    def ibm_like(cls) -> "NoiseModel":
        return cls(0.0005, 0.008, 0.015, 100.0, 80.0, 0.035, 0.3,
                   [NoiseChannel.DEPOLARIZING, NoiseChannel.THERMAL_RELAXATION])

    @classmethod
    def noisy(cls) -> "NoiseModel":
        return cls(0.05, 0.1, 0.1, 10.0, 5.0, 0.1, 0.5,
                   [NoiseChannel.DEPOLARIZING, NoiseChannel.AMPLITUDE_DAMPING,
                    NoiseChannel.PHASE_DAMPING])

    @classmethod
    def preset(cls, name: str) -> "NoiseModel":
        presets = {"ideal": cls.ideal, "default": cls.default,
                   "ibm_like": cls.ibm_like, "noisy": cls.noisy}
        if name not in presets:
            raise InvalidParameter(f"unknown noise preset '{name}'")
        return presets[name]()

    # ---- application ----
    def _apply(self, register: QuantumRegister, qubit: int, error: float, gate_time: float,
               rng: np.random.Generator) -> None:
        for channel in self.channels:
            if channel is NoiseChannel.DEPOLARIZING:
                depolarize(register, qubit, error, rng)
            elif channel is NoiseChannel.BIT_FLIP:
                bit_flip(register, qubit, error, rng)
            elif channel is NoiseChannel.PHASE_FLIP:
                phase_flip(register, qubit, error, rng)
            elif channel is NoiseChannel.AMPLITUDE_DAMPING:
                amplitude_damp(register, qubit, 1.0 - math.exp(-gate_time / self.t1))
            elif channel is NoiseChannel.PHASE_DAMPING:
                phase_damp(register, qubit, 1.0 - math.exp(-gate_time / self.t2), rng)
            elif channel is NoiseChannel.THERMAL_RELAXATION:
                thermal_relax(register, qubit, self.t1, self.t2, gate_time, rng)
            # READOUT_ERROR acts on outcomes only

    def apply_single_gate_noise(self, register: QuantumRegister, qubit: int,
                                rng: Optional[np.random.Generator] = None) -> None:
        if not self.channels or self.single_gate_error == 0.0:
            return
        self._apply(register, qubit, self.single_gate_error, self.single_gate_time, _rng(rng))

    def apply_two_gate_noise(self, register: QuantumRegister, q0: int, q1: int,
                             rng: Optional[np.random.Generator] = None) -> None:
        self.apply_gate_noise(register, [q0, q1], rng)

    def apply_gate_noise(self, register: QuantumRegister, qubits: Sequence[int],
                         rng: Optional[np.random.Generator] = None) -> None:
        """Noise after a gate on ``qubits``; gates on 2+ qubits use the two-qubit rates."""
        qubits = [register._idx(q) for q in qubits]
        if len(qubits) == 1:
            self.apply_single_gate_noise(register, qubits[0], rng)
            return
        if not self.channels or self.two_gate_error == 0.0:
            return
        rng = _rng(rng)
        for q in qubits:
            self._apply(register, q, self.two_gate_error, self.two_gate_time, rng)

    def apply_measurement_noise(self, outcome: int, rng: Optional[np.random.Generator] = None) -> int:
        if self.measurement_error == 0.0:
            return outcome
        if _rng(rng).random() < self.measurement_error:
            return 1 - int(outcome)
        return outcome

    def run(self, register: QuantumRegister, circuit, rng: Optional[np.random.Generator] = None) -> None:
        """Replay ``circuit`` with this model's noise after every applied gate.

        Instructions whose classical condition is not met are skipped, noise included.
        """
        rng = _rng(rng)
        for ins in circuit.instructions:
            if not register.condition_met(ins.condition):
                continue
            register.apply_gate(ins.gate, ins.qubits)
            self.apply_gate_noise(register, ins.qubits, rng)

    def measure(self, register: QuantumRegister, qubit: int,
                rng: Optional[np.random.Generator] = None) -> int:
        """Collapsing measurement followed by readout error."""
        rng = _rng(rng)
        return self.apply_measurement_noise(register.measure(qubit, rng), rng)


@dataclass
class DepolarizingNoise:
    probability: float

    def __post_init__(self):
        self.probability = min(1.0, max(0.0, float(self.probability)))

    def apply(self, register: QuantumRegister, qubit: int,
              rng: Optional[np.random.Generator] = None) -> None:
        depolarize(register, qubit, self.probability, rng)


@dataclass
class AmplitudeDamping:
    gamma: float

    def __post_init__(self):
        self.gamma = min(1.0, max(0.0, float(self.gamma)))

    @classmethod
    def from_t1(cls, t1: float, gate_time: float) -> "AmplitudeDamping":
        if not t1 > 0:
            raise InvalidParameter(f"t1 must be positive, got {t1}")
        return cls(1.0 - math.exp(-gate_time / t1))

    def apply(self, register: QuantumRegister, qubit: int) -> None:
        amplitude_damp(register, qubit, self.gamma)
