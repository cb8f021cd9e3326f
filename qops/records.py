# qops/records.py
"""Plain dict records for crossing process / UI boundaries.

Records hold only numbers, strings, lists and dicts; enums travel as their
string values.  Amplitudes are ``[re, im]`` pairs.
"""
from __future__ import annotations
import math
from typing import Any, Dict

from .circuit import Circuit, ClassicalCondition
from .errors import InvalidParameter
from .gates import Gate, GateKind, gate_from_name
from .measurement import MeasurementStatistics
from .noise import NoiseChannel, NoiseModel
from .register import QuantumRegister

Record = Dict[str, Any]


def gate_to_record(gate: Gate) -> Record:
    rec: Record = {"name": gate.name, "kind": gate.kind.value, "num_qubits": gate.num_qubits,
                   "params": list(gate.params)}
    if gate.kind is GateKind.CUSTOM:
        rec["matrix"] = [[[float(v.real), float(v.imag)] for v in row] for row in gate.matrix]
    return rec


def gate_from_record(rec: Record) -> Gate:
    kind = GateKind(rec.get("kind", GateKind.FIXED.value))
    if kind is GateKind.CUSTOM:
        if "matrix" not in rec:
            raise InvalidParameter(f"custom gate '{rec.get('name')}' record has no matrix")
        matrix = [[complex(re, im) for re, im in row] for row in rec["matrix"]]
        return Gate.custom(rec["name"], matrix)
    return gate_from_name(rec["name"], rec.get("params", []))


def _instruction_to_record(ins) -> Record:
    rec: Record = {"gate": gate_to_record(ins.gate), "qubits": list(ins.qubits)}
    if ins.condition is not None:
        rec["condition"] = [ins.condition.bit, ins.condition.value]
    return rec


def circuit_to_record(circuit: Circuit) -> Record:
    return {
        "name": circuit.name,
        "num_qubits": circuit.num_qubits,
        "max_depth": circuit.max_depth,
        "num_classical_bits": circuit.num_classical_bits,
        "depth": circuit.depth(),
        "gate_count": circuit.gate_count(),
        "instructions": [_instruction_to_record(ins) for ins in circuit.instructions],
    }


def circuit_from_record(rec: Record) -> Circuit:
    c = Circuit(int(rec["num_qubits"]), name=rec.get("name", "circuit"),
                max_depth=rec.get("max_depth"), num_classical_bits=rec.get("num_classical_bits"))
    for ins in rec.get("instructions", []):
        cond = ins.get("condition")
        c.add_gate(gate_from_record(ins["gate"]), [int(q) for q in ins["qubits"]],
                   ClassicalCondition(int(cond[0]), int(cond[1])) if cond else None)
    return c


def register_to_record(register: QuantumRegister) -> Record:
    return {
        "num_qubits": register.num_qubits,
        "amplitudes": [[float(a.real), float(a.imag)] for a in register.amplitudes],
        "probabilities": [float(p) for p in register.probabilities()],
        "classical_bits": list(register.classical_bits),
    }


def statistics_to_record(stats: MeasurementStatistics) -> Record:
    return {
        "shots": stats.shots,
        "qubits": list(stats.qubits),
        "basis": stats.basis.value,
        "counts": dict(sorted(stats.counts.items())),
        "probabilities": dict(sorted(stats.probabilities().items())),
    }


def _finite_or_none(value: float):
    # None encodes an infinite relaxation time
    return None if math.isinf(value) else value


def noise_model_to_record(model: NoiseModel) -> Record:
    return {
        "single_gate_error": model.single_gate_error,
        "two_gate_error": model.two_gate_error,
        "measurement_error": model.measurement_error,
        "t1": _finite_or_none(model.t1),
        "t2": _finite_or_none(model.t2),
        "single_gate_time": model.single_gate_time,
        "two_gate_time": model.two_gate_time,
        "channels": [c.value for c in model.channels],
    }


def noise_model_from_record(rec: Record) -> NoiseModel:
    fields = dict(rec)
    fields["channels"] = [NoiseChannel(c) for c in rec.get("channels", [])]
    for name in ("t1", "t2"):
        if name in fields and fields[name] is None:
            fields[name] = math.inf
    return NoiseModel(**fields)
