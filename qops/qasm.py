# qops/qasm.py
"""Read back the OPENQASM 2.0 subset written by ``Circuit.to_qasm``."""
from __future__ import annotations
import math
import re
from typing import List, Optional

from .circuit import Circuit, ClassicalCondition
from .errors import InvalidParameter
from .gates import gate_from_name

PI_ENV = {"__builtins__": None, "pi": math.pi, "tau": math.tau}

_QREG = re.compile(r"qreg\s+(\w+)\s*\[\s*(\d+)\s*\]\s*;$")
_CREG = re.compile(r"creg\s+(\w+)\s*\[\s*(\d+)\s*\]\s*;$")
_IF = re.compile(r"if\s*\(\s*(\w+)\s*\[\s*(\d+)\s*\]\s*==\s*(\d+)\s*\)\s*(.+)$")
_GATE = re.compile(r"([A-Za-z_]\w*)\s*(?:\((.*?)\))?\s+(.+?)\s*;$")
_TARGET = re.compile(r"(\w+)\s*\[\s*(\d+)\s*\]$")
_NAME = re.compile(r"//\s*circuit:\s*(.+)$")


def _angle(expr: str) -> float:
    expr = expr.strip()
    if not re.fullmatch(r"[0-9eE+\-*/.() pitau]+", expr):
        raise InvalidParameter(f"bad gate parameter '{expr}'")
    try:
        return float(eval(expr, PI_ENV, {}))
    except Exception as e:
        raise InvalidParameter(f"bad gate parameter '{expr}': {e}") from e


def from_qasm(text: str) -> Circuit:
    circuit: Optional[Circuit] = None
    reg: Optional[str] = None
    creg: Optional[str] = None
    cbits = 0
    name = "circuit"
    for lineno, raw in enumerate(text.splitlines(), 1):
        ln = raw.strip()
        if not ln:
            continue
        m = _NAME.match(ln)
        if m:
            name = m.group(1).strip(); continue
        if ln.startswith("//custom") or ln.startswith("// custom"):
            raise InvalidParameter(f"line {lineno}: custom gates cannot be read back from QASM")
        if ln.startswith("//"):
            continue
        if ln.startswith("OPENQASM") or ln.startswith("include") or ln.startswith("barrier"):
            continue

        m = _CREG.match(ln)
        if m:
            if creg is not None:
                raise InvalidParameter(f"line {lineno}: only one creg is supported")
            creg, cbits = m.group(1), int(m.group(2))
            if circuit is not None:
                circuit.num_classical_bits = cbits
            continue

        m = _QREG.match(ln)
        if m:
            if circuit is not None:
                raise InvalidParameter(f"line {lineno}: only one qreg is supported")
            reg = m.group(1)
            circuit = Circuit(int(m.group(2)), name=name, num_classical_bits=cbits)
            continue

        condition = None
        m = _IF.match(ln)
        if m:
            if m.group(1) != creg:
                raise InvalidParameter(f"line {lineno}: unknown classical register '{m.group(1)}'")
            condition = ClassicalCondition(int(m.group(2)), int(m.group(3)))
            ln = m.group(4)

        m = _GATE.match(ln)
        if not m:
            raise InvalidParameter(f"line {lineno}: unrecognized: {ln}")
        if circuit is None:
            raise InvalidParameter(f"line {lineno}: gate before qreg declaration")
        gname, params, targets = m.groups()
        values = [_angle(p) for p in params.split(",")] if params else []
        qubits: List[int] = []
        for tok in targets.split(","):
            tm = _TARGET.match(tok.strip())
            if not tm or tm.group(1) != reg:
                raise InvalidParameter(f"line {lineno}: bad qubit reference '{tok.strip()}'")
            qubits.append(int(tm.group(2)))
        circuit.add_gate(gate_from_name(gname, values), qubits, condition)

    if circuit is None:
        raise InvalidParameter("missing qreg declaration")
    return circuit
