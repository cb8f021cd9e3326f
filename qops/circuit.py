from __future__ import annotations
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from . import gates as g
from .errors import InvalidParameter, InvalidQubitIndex, MaxDepthExceeded, SameQubitIndex
from .gates import Gate, GateKind


@dataclass(frozen=True)
class ClassicalCondition:
    """Run the instruction only when classical bit ``bit`` equals ``value``."""
    bit: int
    value: int = 1

    def __str__(self) -> str:
        return f"c[{self.bit}]=={self.value}"


@dataclass(frozen=True)
class CircuitInstruction:
    gate: Gate
    qubits: Tuple[int, ...]
    condition: Optional[ClassicalCondition] = None

    def __str__(self) -> str:
        out = f"{self.gate} on {list(self.qubits)}"
        return f"{out} if {self.condition}" if self.condition else out


def _is_index(q) -> bool:
    return isinstance(q, (int, np.integer)) and not isinstance(q, bool)


@dataclass
class Circuit:
    """Ordered (gate, targets) list, replayed by QuantumRegister.apply_circuit."""
    num_qubits: int
    name: str = "circuit"
    max_depth: Optional[int] = None
    instructions: List[CircuitInstruction] = field(default_factory=list)
    num_classical_bits: Optional[int] = None

    def __post_init__(self):
        if self.num_qubits < 1:
            raise InvalidParameter(f"circuit needs at least one qubit, got {self.num_qubits}")
        if self.num_classical_bits is None:
            self.num_classical_bits = self.num_qubits
        if self.num_classical_bits < 0:
            raise InvalidParameter(f"classical bit count must be >= 0, got {self.num_classical_bits}")

    def __len__(self) -> int:
        return len(self.instructions)

    def __iter__(self):
        return iter(self.instructions)

    # ---- metrics ----
    def _layers(self) -> List[int]:
        depth = [0] * self.num_qubits
        for ins in self.instructions:
            layer = 1 + max(depth[q] for q in ins.qubits)
            for q in ins.qubits: depth[q] = layer
        return depth

    def depth(self) -> int:
        return max(self._layers(), default=0)

    def gate_count(self) -> int:
        return len(self.instructions)

    def gate_counts(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for ins in self.instructions:
            counts[ins.gate.name] = counts.get(ins.gate.name, 0) + 1
        return counts

    def two_qubit_count(self) -> int:
        return sum(1 for ins in self.instructions if len(ins.qubits) >= 2)

    # ---- building ----
    def _check(self, gate: Gate, qubits: Sequence[int]) -> Tuple[int, ...]:
        if gate.num_qubits != len(qubits):
            raise InvalidParameter(
                f"gate '{gate.name}' acts on {gate.num_qubits} qubit(s), got {len(qubits)}")
        for q in qubits:
            if not _is_index(q):
                raise InvalidParameter(f"qubit index must be an int, got {q!r}")
            if not 0 <= q < self.num_qubits:
                raise InvalidQubitIndex(int(q), self.num_qubits)
        for i, a in enumerate(qubits):
            if a in qubits[i + 1:]:
                raise SameQubitIndex(int(a), int(a))
        return tuple(int(q) for q in qubits)

    def _check_condition(self, condition: ClassicalCondition) -> ClassicalCondition:
        bit, value = condition.bit, condition.value
        if not _is_index(bit) or not 0 <= bit < self.num_classical_bits:
            raise InvalidParameter(
                f"classical bit {bit!r} out of range for {self.num_classical_bits} bit(s)")
        if not _is_index(value) or value not in (0, 1):
            raise InvalidParameter(f"condition value must be 0 or 1, got {value!r}")
        return ClassicalCondition(int(bit), int(value))

    def add_gate(self, gate: Gate, qubits: Sequence[int],
                 condition: Optional[ClassicalCondition] = None) -> "Circuit":
        qs = self._check(gate, list(qubits))
        if condition is not None:
            condition = self._check_condition(condition)
        if self.max_depth is not None:
            layers = self._layers()
            if 1 + max(layers[q] for q in qs) > self.max_depth:
                raise MaxDepthExceeded(self.max_depth)
        self.instructions.append(CircuitInstruction(gate, qs, condition))
        return self

    def add_conditional_gate(self, gate: Gate, qubits: Sequence[int], bit: int,
                             value: int = 1) -> "Circuit":
        """Append ``gate`` guarded by ``classical_bits[bit] == value`` at replay time."""
        return self.add_gate(gate, qubits, ClassicalCondition(bit, value))

    def barrier(self) -> "Circuit":
        # visual separator only; nothing is recorded
        return self

    # single-qubit
    def id(self, q: int) -> "Circuit": return self.add_gate(g.identity(), [q])
    def x(self, q: int) -> "Circuit": return self.add_gate(g.x(), [q])
    def y(self, q: int) -> "Circuit": return self.add_gate(g.y(), [q])
    def z(self, q: int) -> "Circuit": return self.add_gate(g.z(), [q])
    def h(self, q: int) -> "Circuit": return self.add_gate(g.h(), [q])
    def s(self, q: int) -> "Circuit": return self.add_gate(g.s(), [q])
    def sdg(self, q: int) -> "Circuit": return self.add_gate(g.sdg(), [q])
    def t(self, q: int) -> "Circuit": return self.add_gate(g.t(), [q])
    def tdg(self, q: int) -> "Circuit": return self.add_gate(g.tdg(), [q])
    def sx(self, q: int) -> "Circuit": return self.add_gate(g.sqrt_x(), [q])
    def rx(self, theta: float, q: int) -> "Circuit": return self.add_gate(g.rx(theta), [q])
    def ry(self, theta: float, q: int) -> "Circuit": return self.add_gate(g.ry(theta), [q])
    def rz(self, theta: float, q: int) -> "Circuit": return self.add_gate(g.rz(theta), [q])
    def p(self, lam: float, q: int) -> "Circuit": return self.add_gate(g.phase(lam), [q])
    def u3(self, theta: float, phi: float, lam: float, q: int) -> "Circuit":
        return self.add_gate(g.u3(theta, phi, lam), [q])

    # two-qubit
    def cnot(self, c: int, t: int) -> "Circuit": return self.add_gate(g.cnot(), [c, t])
    cx = cnot
    def cz(self, a: int, b: int) -> "Circuit": return self.add_gate(g.cz(), [a, b])
    def cy(self, c: int, t: int) -> "Circuit": return self.add_gate(g.cy(), [c, t])
    def swap(self, a: int, b: int) -> "Circuit": return self.add_gate(g.swap(), [a, b])
    def iswap(self, a: int, b: int) -> "Circuit": return self.add_gate(g.iswap(), [a, b])
    def crz(self, theta: float, c: int, t: int) -> "Circuit": return self.add_gate(g.crz(theta), [c, t])
    def cp(self, theta: float, c: int, t: int) -> "Circuit": return self.add_gate(g.cphase(theta), [c, t])

    # three-qubit
    def toffoli(self, c0: int, c1: int, t: int) -> "Circuit": return self.add_gate(g.toffoli(), [c0, c1, t])
    ccx = toffoli
    def fredkin(self, c: int, a: int, b: int) -> "Circuit": return self.add_gate(g.fredkin(), [c, a, b])
    cswap = fredkin

    def h_all(self) -> "Circuit":
        for q in range(self.num_qubits): self.h(q)
        return self

    def x_all(self) -> "Circuit":
        for q in range(self.num_qubits): self.x(q)
        return self

    # ---- composition ----
    def append(self, other: "Circuit") -> "Circuit":
        if other.num_qubits > self.num_qubits:
            raise InvalidParameter(
                f"cannot append {other.num_qubits}-qubit circuit to {self.num_qubits}-qubit circuit")
        for ins in other.instructions:
            self.add_gate(ins.gate, ins.qubits, ins.condition)
        return self

    def inverse(self) -> "Circuit":
        """Reversed adjoints; classical conditions stay on their instructions."""
        inv = Circuit(self.num_qubits, name=f"{self.name}_dg",
                      num_classical_bits=self.num_classical_bits)
        for ins in reversed(self.instructions):
            inv.instructions.append(CircuitInstruction(ins.gate.adjoint(), ins.qubits, ins.condition))
        return inv

    def repeat(self, times: int) -> "Circuit":
        if times < 0:
            raise InvalidParameter(f"repeat count must be >= 0, got {times}")
        out = Circuit(self.num_qubits, name=f"{self.name}x{times}", max_depth=self.max_depth,
                      num_classical_bits=self.num_classical_bits)
        for _ in range(times):
            out.append(self)
        return out

    # ---- export ----
    def to_qasm(self) -> str:
        lines = [
            "OPENQASM 2.0;",
            "include \"qelib1.inc\";",
            f"// circuit: {self.name}",
            f"qreg q[{self.num_qubits}];",
        ]
        if self.num_classical_bits:
            lines.append(f"creg c[{self.num_classical_bits}];")
        for ins in self.instructions:
            gate = ins.gate
            targets = ", ".join(f"q[{q}]" for q in ins.qubits)
            guard = f"if({ins.condition}) " if ins.condition else ""
            if gate.kind is GateKind.CUSTOM:
                lines.append(f"// custom {guard}{gate.name} {targets}")
                continue
            head = gate.name
            if gate.params:
                head += "(" + ", ".join(repr(p) for p in gate.params) + ")"
            lines.append(f"{guard}{head} {targets};")
        return "\n".join(lines) + "\n"

    def __str__(self) -> str:
        out = [f"Circuit '{self.name}' ({self.num_qubits} qubits, depth {self.depth()})"]
        for i, ins in enumerate(self.instructions):
            out.append(f"  {i}: {ins}")
        return "\n".join(out)

    # ---- canned circuits ----
    @classmethod
    def bell_state(cls) -> "Circuit":
        return cls(2, name="bell").h(0).cnot(0, 1)

    @classmethod
    def ghz_state(cls, n: int) -> "Circuit":
        c = cls(n, name="ghz").h(0)
        for i in range(n - 1): c.cnot(i, i + 1)
        return c

    @classmethod
    def qft(cls, n: int) -> "Circuit":
        c = cls(n, name="qft")
        for j in range(n):
            c.h(j)
            for k in range(j + 1, n):
                c.cp(math.pi / (2 ** (k - j)), k, j)
        for i in range(n // 2):
            c.swap(i, n - 1 - i)
        return c

    @classmethod
    def iqft(cls, n: int) -> "Circuit":
        return cls.qft(n).inverse()
