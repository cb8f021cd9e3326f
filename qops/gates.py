# qops/gates.py
"""Gate catalog.

Every gate carries an explicit unitary.  Multi-qubit matrices are written over
the gate's *local* basis, in which the first listed target qubit is the most
significant bit: CNOT on targets ``[c, t]`` is the textbook ``|c t>`` matrix,
Toffoli on ``[c0, c1, t]`` swaps local states 6 and 7.  The register's index
pairing reads targets in exactly this order.
"""
from __future__ import annotations
import math, cmath
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Optional, Sequence, Tuple

import numpy as np

from .errors import InvalidParameter, NonUnitaryGate

UNITARY_TOL = 1e-8

_S2 = 1 / math.sqrt(2)

I2 = np.eye(2, dtype=np.complex128)
X = np.array([[0, 1], [1, 0]], dtype=np.complex128)
Y = np.array([[0, -1j], [1j, 0]], dtype=np.complex128)
Z = np.array([[1, 0], [0, -1]], dtype=np.complex128)
H = _S2 * np.array([[1, 1], [1, -1]], dtype=np.complex128)
S = np.array([[1, 0], [0, 1j]], dtype=np.complex128)
T = np.array([[1, 0], [0, cmath.exp(1j * math.pi / 4)]], dtype=np.complex128)
SX = 0.5 * np.array([[1 + 1j, 1 - 1j], [1 - 1j, 1 + 1j]], dtype=np.complex128)

CNOT_4 = np.array([[1,0,0,0],[0,1,0,0],[0,0,0,1],[0,0,1,0]], dtype=np.complex128)
CZ_4 = np.diag([1, 1, 1, -1]).astype(np.complex128)
CY_4 = np.array([[1,0,0,0],[0,1,0,0],[0,0,0,-1j],[0,0,1j,0]], dtype=np.complex128)
SWAP_4 = np.array([[1,0,0,0],[0,0,1,0],[0,1,0,0],[0,0,0,1]], dtype=np.complex128)
ISWAP_4 = np.array([[1,0,0,0],[0,0,1j,0],[0,1j,0,0],[0,0,0,1]], dtype=np.complex128)
_hp, _hm = 0.5 * (1 + 1j), 0.5 * (1 - 1j)
SQRT_SWAP_4 = np.array([[1,0,0,0],[0,_hp,_hm,0],[0,_hm,_hp,0],[0,0,0,1]], dtype=np.complex128)


def _permutation_8(a: int, b: int) -> np.ndarray:
    m = np.eye(8, dtype=np.complex128)
    m[[a, b]] = m[[b, a]]
    return m

TOFFOLI_8 = _permutation_8(6, 7)   # |110> <-> |111>
FREDKIN_8 = _permutation_8(5, 6)   # |101> <-> |110>


def Rx(theta: float) -> np.ndarray:
    c, s = math.cos(theta / 2), math.sin(theta / 2)
    return np.array([[c, -1j * s], [-1j * s, c]], dtype=np.complex128)

def Ry(theta: float) -> np.ndarray:
    c, s = math.cos(theta / 2), math.sin(theta / 2)
    return np.array([[c, -s], [s, c]], dtype=np.complex128)

def Rz(theta: float) -> np.ndarray:
    return np.array([[cmath.exp(-1j*theta/2), 0], [0, cmath.exp(1j*theta/2)]], dtype=np.complex128)

def Phase(lam: float) -> np.ndarray:
    return np.array([[1, 0], [0, cmath.exp(1j * lam)]], dtype=np.complex128)

def U3(theta: float, phi: float, lam: float) -> np.ndarray:
    c, s = math.cos(theta / 2), math.sin(theta / 2)
    return np.array([[c, -cmath.rect(s, lam)],
                     [cmath.rect(s, phi), cmath.rect(c, phi + lam)]], dtype=np.complex128)

def controlled_matrix(u: np.ndarray) -> np.ndarray:
    """Block-diagonal diag(I, U); the new control is the local MSB."""
    d = u.shape[0]
    out = np.eye(2 * d, dtype=np.complex128)
    out[d:, d:] = u
    return out


class GateKind(Enum):
    FIXED = "fixed"
    PARAMETERIZED = "parameterized"
    CUSTOM = "custom"


def unitarity_deviation(m: np.ndarray) -> float:
    return float(np.linalg.norm(m.conj().T @ m - np.eye(m.shape[0])))


@dataclass(frozen=True, eq=False)
class Gate:
    name: str
    kind: GateKind
    num_qubits: int
    matrix: np.ndarray = field(repr=False)
    params: Tuple[float, ...] = ()

    def __post_init__(self):
        m = np.array(self.matrix, dtype=np.complex128)
        m.flags.writeable = False
        object.__setattr__(self, "matrix", m)
        object.__setattr__(self, "params", tuple(float(p) for p in self.params))

    @property
    def parameter(self) -> Optional[float]:
        return self.params[0] if self.params else None

    @property
    def is_parameterized(self) -> bool:
        return self.kind is GateKind.PARAMETERIZED

    def is_unitary(self, tol: float = UNITARY_TOL) -> bool:
        return unitarity_deviation(self.matrix) <= tol

    def adjoint(self) -> "Gate":
        if self.kind is GateKind.FIXED:
            return fixed_gate(_FIXED_ADJOINT.get(self.name, self.name))
        if self.kind is GateKind.PARAMETERIZED:
            if self.name == "u3":
                theta, phi, lam = self.params
                return u3(-theta, -lam, -phi)
            return _PARAMETRIC[self.name][0](*(-p for p in self.params))
        return Gate(f"{self.name}_dg", GateKind.CUSTOM, self.num_qubits, self.matrix.conj().T)

    @classmethod
    def custom(cls, name: str, matrix) -> "Gate":
        m = np.asarray(matrix, dtype=np.complex128)
        if m.ndim != 2 or m.shape[0] != m.shape[1]:
            raise InvalidParameter(f"gate matrix must be square, got shape {m.shape}")
        if m.shape[0] not in (2, 4, 8):
            raise InvalidParameter(f"gate matrix must be 2x2, 4x4 or 8x8, got {m.shape[0]}x{m.shape[0]}")
        dev = unitarity_deviation(m)
        if dev > UNITARY_TOL:
            raise NonUnitaryGate(dev)
        return cls(name, GateKind.CUSTOM, int(m.shape[0]).bit_length() - 1, m)

    def __str__(self) -> str:
        if self.params:
            return f"{self.name}({', '.join(f'{p:.4f}' for p in self.params)})"
        return self.name


def _fixed(name: str, m: np.ndarray) -> Callable[[], Gate]:
    n = m.shape[0].bit_length() - 1
    return lambda: Gate(name, GateKind.FIXED, n, m)

_FIXED: Dict[str, Callable[[], Gate]] = {
    "id": _fixed("id", I2), "x": _fixed("x", X), "y": _fixed("y", Y), "z": _fixed("z", Z),
    "h": _fixed("h", H),
    "s": _fixed("s", S), "sdg": _fixed("sdg", S.conj().T),
    "t": _fixed("t", T), "tdg": _fixed("tdg", T.conj().T),
    "sx": _fixed("sx", SX), "sxdg": _fixed("sxdg", SX.conj().T),
    "cx": _fixed("cx", CNOT_4), "cz": _fixed("cz", CZ_4), "cy": _fixed("cy", CY_4),
    "swap": _fixed("swap", SWAP_4),
    "iswap": _fixed("iswap", ISWAP_4), "iswapdg": _fixed("iswapdg", ISWAP_4.conj().T),
    "sqrtswap": _fixed("sqrtswap", SQRT_SWAP_4),
    "sqrtswapdg": _fixed("sqrtswapdg", SQRT_SWAP_4.conj().T),
    "ccx": _fixed("ccx", TOFFOLI_8), "cswap": _fixed("cswap", FREDKIN_8),
}

_FIXED_ADJOINT = {
    "s": "sdg", "sdg": "s", "t": "tdg", "tdg": "t", "sx": "sxdg", "sxdg": "sx",
    "iswap": "iswapdg", "iswapdg": "iswap", "sqrtswap": "sqrtswapdg", "sqrtswapdg": "sqrtswap",
}

ALIASES = {"i": "id", "cnot": "cx", "toffoli": "ccx", "fredkin": "cswap",
           "u1": "p", "phase": "p", "cphase": "cp", "sdag": "sdg", "tdag": "tdg"}


def fixed_gate(name: str) -> Gate:
    key = ALIASES.get(name.lower(), name.lower())
    if key not in _FIXED:
        raise InvalidParameter(f"unknown fixed gate '{name}'")
    return _FIXED[key]()


# ---- fixed gate constructors ----
def identity() -> Gate: return fixed_gate("id")
def x() -> Gate: return fixed_gate("x")
def y() -> Gate: return fixed_gate("y")
def z() -> Gate: return fixed_gate("z")
def h() -> Gate: return fixed_gate("h")
def s() -> Gate: return fixed_gate("s")
def sdg() -> Gate: return fixed_gate("sdg")
def t() -> Gate: return fixed_gate("t")
def tdg() -> Gate: return fixed_gate("tdg")
def sqrt_x() -> Gate: return fixed_gate("sx")
def sqrt_x_dg() -> Gate: return fixed_gate("sxdg")
def cnot() -> Gate: return fixed_gate("cx")
def cz() -> Gate: return fixed_gate("cz")
def cy() -> Gate: return fixed_gate("cy")
def swap() -> Gate: return fixed_gate("swap")
def iswap() -> Gate: return fixed_gate("iswap")
def sqrt_swap() -> Gate: return fixed_gate("sqrtswap")
def toffoli() -> Gate: return fixed_gate("ccx")
def fredkin() -> Gate: return fixed_gate("cswap")


# ---- parameterized gates ----
def _param(name: str, build: Callable[..., np.ndarray], nq: int) -> Callable[..., Gate]:
    def make(*params: float) -> Gate:
        return Gate(name, GateKind.PARAMETERIZED, nq, build(*params), params)
    make.__name__ = name
    return make

rx = _param("rx", Rx, 1)
ry = _param("ry", Ry, 1)
rz = _param("rz", Rz, 1)
phase = _param("p", Phase, 1)
u3 = _param("u3", U3, 1)
crz = _param("crz", lambda th: controlled_matrix(Rz(th)), 2)
cphase = _param("cp", lambda th: controlled_matrix(Phase(th)), 2)

_PARAMETRIC: Dict[str, Tuple[Callable[..., Gate], int]] = {
    "rx": (rx, 1), "ry": (ry, 1), "rz": (rz, 1), "p": (phase, 1),
    "u3": (u3, 3), "crz": (crz, 1), "cp": (cphase, 1),
}


def gate_from_name(name: str, params: Sequence[float] = ()) -> Gate:
    """Resolve a catalog name (plus parameters) into a Gate."""
    key = ALIASES.get(name.lower(), name.lower())
    if key in _PARAMETRIC:
        make, arity = _PARAMETRIC[key]
        if len(params) != arity:
            raise InvalidParameter(f"gate '{name}' takes {arity} parameter(s), got {len(params)}")
        return make(*params)
    if params:
        raise InvalidParameter(f"gate '{name}' takes no parameters")
    return fixed_gate(key)


def catalog_names() -> Tuple[str, ...]:
    return tuple(_FIXED) + tuple(_PARAMETRIC)


def controlled(base: Gate) -> Gate:
    """Add one control qubit in front of ``base`` (new local MSB)."""
    if base.num_qubits >= 3:
        raise InvalidParameter("controlled gates are limited to three qubits")
    return Gate(f"c{base.name}", GateKind.CUSTOM, base.num_qubits + 1,
                controlled_matrix(base.matrix), base.params)


@dataclass
class ParameterizedGate:
    """A named, re-bindable angle for variational circuits."""
    gate_name: str
    param_name: str
    value: float = 0.0

    def __post_init__(self):
        key = ALIASES.get(self.gate_name.lower(), self.gate_name.lower())
        if key not in _PARAMETRIC or _PARAMETRIC[key][1] != 1:
            raise InvalidParameter(f"'{self.gate_name}' is not a single-angle gate")
        self.gate_name = key

    def set_value(self, value: float) -> None:
        self.value = float(value)

    def to_gate(self) -> Gate:
        return _PARAMETRIC[self.gate_name][0](self.value)
