import math
import numpy as np
import pytest

from qops import gates as g
from qops.errors import InvalidParameter, NonUnitaryGate
from qops.gates import Gate, GateKind, ParameterizedGate, gate_from_name


def _all_gates():
    out = [g.fixed_gate(name) for name in g._FIXED]
    out += [g.rx(0.3), g.ry(-1.1), g.rz(2.5), g.phase(0.9), g.u3(0.4, 1.2, -0.7),
            g.crz(0.8), g.cphase(-2.2)]
    return out


def test_catalog_is_unitary_with_matching_arity():
    for gate in _all_gates():
        assert gate.is_unitary(), gate.name
        assert gate.matrix.shape == (1 << gate.num_qubits,) * 2


def test_involutions():
    for m in (g.X, g.Y, g.Z, g.H):
        assert np.allclose(m @ m, np.eye(2))


def test_adjoint_inverts_every_gate():
    for gate in _all_gates():
        prod = gate.matrix @ gate.adjoint().matrix
        assert np.allclose(prod, np.eye(prod.shape[0]), atol=1e-12), gate.name


def test_rotation_identities():
    assert np.allclose(g.Rz(math.pi), -1j * g.Z)
    assert np.allclose(g.Rx(2 * math.pi), -np.eye(2))
    assert np.allclose(g.s().matrix @ g.s().matrix, g.Z)
    assert np.allclose(g.t().matrix @ g.t().matrix, g.S)


def test_multi_qubit_local_ordering():
    # first target is the local MSB: |10> -> |11>
    assert g.cnot().matrix[3, 2] == 1
    assert g.toffoli().matrix[7, 6] == 1 and g.toffoli().matrix[6, 7] == 1
    assert g.fredkin().matrix[5, 6] == 1 and g.fredkin().matrix[6, 5] == 1
    assert np.allclose(g.controlled(g.x()).matrix, g.CNOT_4)


def test_custom_gate_validation():
    gate = Gate.custom("myh", g.H)
    assert gate.kind is GateKind.CUSTOM and gate.num_qubits == 1
    assert Gate.custom("sw", g.SWAP_4).num_qubits == 2
    with pytest.raises(NonUnitaryGate):
        Gate.custom("bad", [[1, 1], [0, 1]])
    with pytest.raises(InvalidParameter):
        Gate.custom("odd", np.eye(3))
    with pytest.raises(InvalidParameter):
        Gate.custom("rect", np.ones((2, 4)))
    # within tolerance is accepted
    Gate.custom("near", g.H + 1e-12)


def test_gate_matrix_is_read_only():
    with pytest.raises(ValueError):
        g.x().matrix[0, 0] = 5


def test_gate_from_name_and_aliases():
    assert gate_from_name("CNOT").name == "cx"
    assert gate_from_name("u1", [0.5]).name == "p"
    assert gate_from_name("rx", [0.25]).parameter == 0.25
    assert gate_from_name("u3", [1, 2, 3]).params == (1.0, 2.0, 3.0)
    with pytest.raises(InvalidParameter):
        gate_from_name("rx")
    with pytest.raises(InvalidParameter):
        gate_from_name("h", [1.0])
    with pytest.raises(InvalidParameter):
        gate_from_name("nope")


def test_parameterized_gate_rebinding():
    pg = ParameterizedGate("Ry", "theta", 0.1)
    assert pg.to_gate().parameter == pytest.approx(0.1)
    pg.set_value(1.5)
    assert np.allclose(pg.to_gate().matrix, g.Ry(1.5))
    with pytest.raises(InvalidParameter):
        ParameterizedGate("cx", "theta")


def test_catalog_names_resolve():
    names = g.catalog_names()
    assert "cx" in names and "u3" in names
    for name in names:
        arity = g._PARAMETRIC[name][1] if name in g._PARAMETRIC else 0
        assert gate_from_name(name, [0.1] * arity).name == name
    assert np.allclose(g.sqrt_swap().matrix @ g.sqrt_swap().matrix, g.SWAP_4)
    assert np.allclose(g.sqrt_x_dg().matrix @ g.sqrt_x_dg().matrix, g.X.conj().T)
