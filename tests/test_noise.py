import math
import numpy as np
import pytest

from qops import gates as g
from qops import noise
from qops.circuit import Circuit
from qops.errors import InvalidParameter, InvalidQubitIndex, NormalizationError
from qops.measurement import expectation_pauli
from qops.noise import AmplitudeDamping, DepolarizingNoise, NoiseChannel, NoiseModel
from qops.register import QuantumRegister


def _plus():
    reg = QuantumRegister(1)
    reg.apply_single_gate(g.h(), 0)
    return reg


def _one():
    reg = QuantumRegister(1)
    reg.apply_single_gate(g.x(), 0)
    return reg


def test_amplitude_damping_limits():
    reg = _plus()
    before = reg.amplitudes.copy()
    AmplitudeDamping(0.0).apply(reg, 0)
    assert np.allclose(reg.amplitudes, before)

    reg = _one()
    AmplitudeDamping(1.0).apply(reg, 0)
    assert reg.state.probability(0) == pytest.approx(1.0)

    reg = _one()
    noise.amplitude_damp(reg, 0, 0.5)
    assert reg.state.is_normalized()
    assert reg.state.probability(0) == pytest.approx(0.5)


def test_amplitude_damping_validation():
    with pytest.raises(InvalidParameter):
        noise.amplitude_damp(_one(), 0, 1.5)
    assert AmplitudeDamping(2.0).gamma == 1.0
    assert AmplitudeDamping.from_t1(50.0, 0.0).gamma == 0.0
    with pytest.raises(InvalidParameter):
        AmplitudeDamping.from_t1(0.0, 1.0)


def test_depolarizing():
    reg = _plus()
    before = reg.amplitudes.copy()
    assert noise.depolarize(reg, 0, 0.0, np.random.default_rng(0)) is None
    assert np.allclose(reg.amplitudes, before)
    rng = np.random.default_rng(1)
    for _ in range(20):
        assert noise.depolarize(reg, 0, 1.0, rng) in ("x", "y", "z")
        assert reg.state.is_normalized()
    DepolarizingNoise(0.5).apply(reg, 0, rng)
    assert DepolarizingNoise(-1).probability == 0.0


def test_flips():
    reg = QuantumRegister(1)
    assert noise.bit_flip(reg, 0, 1.0, np.random.default_rng(0))
    assert reg.state.probability(1) == pytest.approx(1.0)
    reg = _plus()
    assert noise.phase_flip(reg, 0, 1.0, np.random.default_rng(0))
    assert expectation_pauli(reg, "X") == pytest.approx(-1.0)
    assert not noise.bit_flip(reg, 0, 0.0, np.random.default_rng(0))


def test_phase_damping_keeps_populations():
    assert noise.phase_damp(_plus(), 0, 0.0, np.random.default_rng(0)) is None
    rng = np.random.default_rng(3)
    for _ in range(20):
        reg = _plus()
        angle = noise.phase_damp(reg, 0, 1.0, rng)
        assert 0.0 <= angle < math.pi
        assert np.allclose(reg.probabilities(), [0.5, 0.5])


def test_validation_happens_before_any_draw():
    reg = QuantumRegister(1)
    rng = np.random.default_rng(8)
    with pytest.raises(InvalidQubitIndex):
        noise.depolarize(reg, 3, 1.0, rng)
    with pytest.raises(InvalidQubitIndex):
        noise.phase_damp(reg, 3, 1.0, rng)
    assert rng.random() == np.random.default_rng(8).random()


def test_thermal_relaxation():
    assert noise.pure_dephasing(50.0, 100.0, 1.0) == 0.0
    t1, t2, t = 50.0, 30.0, 0.5
    expected = 1.0 - math.exp(-(t / t2 - t / (2 * t1)))
    assert noise.pure_dephasing(t1, t2, t) == pytest.approx(expected)
    reg = _one()
    noise.thermal_relax(reg, 0, t1, t2, t, np.random.default_rng(0))
    assert reg.state.is_normalized()
    assert 0.0 < reg.state.probability(0) < 0.05


def test_model_validation_and_presets():
    with pytest.raises(InvalidParameter):
        NoiseModel(single_gate_error=1.5)
    with pytest.raises(InvalidParameter):
        NoiseModel(t1=0.0)
    with pytest.raises(InvalidParameter):
        NoiseModel(two_gate_time=-1.0)
    with pytest.raises(InvalidParameter):
        NoiseModel.preset("bogus")
    assert NoiseModel.preset("ideal").channels == []
    assert NoiseChannel.THERMAL_RELAXATION in NoiseModel.ibm_like().channels
    assert NoiseModel(channels=["bit_flip"]).channels == [NoiseChannel.BIT_FLIP]


def test_ideal_model_matches_noiseless_run():
    c = Circuit.ghz_state(3).rx(0.4, 1)
    ref = QuantumRegister(3)
    ref.apply_circuit(c)
    reg = QuantumRegister(3)
    NoiseModel.ideal().run(reg, c, np.random.default_rng(0))
    assert np.allclose(reg.amplitudes, ref.amplitudes)


def test_noisy_runs_are_seed_reproducible():
    c = Circuit.ghz_state(3).h_all()
    a, b = QuantumRegister(3), QuantumRegister(3)
    NoiseModel.noisy().run(a, c, np.random.default_rng(42))
    NoiseModel.noisy().run(b, c, np.random.default_rng(42))
    assert np.array_equal(a.amplitudes, b.amplitudes)
    assert a.state.is_normalized(1e-9)


def test_two_qubit_gates_use_two_qubit_rates():
    model = NoiseModel(single_gate_error=0.0, two_gate_error=1.0, channels=[NoiseChannel.BIT_FLIP])
    reg = QuantumRegister(2)
    model.run(reg, Circuit(2).x(0).cnot(0, 1), np.random.default_rng(0))
    # cx gives |11>, then both qubits flip back
    assert reg.state.probability(0) == pytest.approx(1.0)


def test_measurement_noise():
    rng = np.random.default_rng(6)
    assert NoiseModel(measurement_error=1.0).apply_measurement_noise(0, rng) == 1
    assert NoiseModel(measurement_error=0.0).apply_measurement_noise(1, rng) == 1
    model = NoiseModel(measurement_error=0.1)
    flips = sum(model.apply_measurement_noise(0, rng) for _ in range(5000))
    assert abs(flips / 5000 - 0.1) < 0.02
    reg = QuantumRegister(1)
    assert NoiseModel(measurement_error=1.0).measure(reg, 0, rng) == 1
    assert reg.classical_bits == [0]


def test_apply_two_gate_noise():
    model = NoiseModel(two_gate_error=1.0, channels=[NoiseChannel.PHASE_FLIP])
    reg = QuantumRegister(2)
    reg.apply_gate(g.h(), [0])
    model.apply_two_gate_noise(reg, 0, 1, np.random.default_rng(0))
    assert expectation_pauli(reg, "IX") == pytest.approx(-1.0)
    with pytest.raises(InvalidQubitIndex):
        model.apply_two_gate_noise(reg, 0, 4, np.random.default_rng(0))
    # nothing applied to qubit 0 either
    assert expectation_pauli(reg, "IX") == pytest.approx(-1.0)


def test_kernels_reject_out_of_range_probabilities():
    reg = _plus()
    rng = np.random.default_rng(12)
    for kernel in (noise.depolarize, noise.bit_flip, noise.phase_flip, noise.phase_damp):
        for p in (1.7, -0.1):
            with pytest.raises(InvalidParameter):
                kernel(reg, 0, p, rng)
    with pytest.raises(InvalidParameter):
        noise.amplitude_damp(reg, 0, -0.1)
    # nothing drawn, nothing applied
    assert rng.random() == np.random.default_rng(12).random()
    assert np.allclose(reg.probabilities(), [0.5, 0.5])


def test_thermal_relaxation_rejects_bad_times():
    reg = _one()
    rng = np.random.default_rng(0)
    for t1, t2, t in ((0.0, 1.0, 0.1), (1.0, -2.0, 0.1), (1.0, 1.0, -0.1)):
        with pytest.raises(InvalidParameter):
            noise.thermal_relax(reg, 0, t1, t2, t, rng)
    with pytest.raises(InvalidParameter):
        noise.pure_dephasing(1.0, 0.0, 0.1)
    assert reg.state.probability(1) == pytest.approx(1.0)


def test_full_damping_of_minus_state_raises_and_keeps_state():
    reg = _one()
    reg.apply_single_gate(g.h(), 0)
    before = reg.amplitudes.copy()
    with pytest.raises(NormalizationError):
        noise.amplitude_damp(reg, 0, 1.0)
    assert np.array_equal(reg.amplitudes, before)


def test_noisy_run_honours_classical_conditions():
    c = Circuit(2).add_conditional_gate(g.x(), [1], bit=0, value=1)
    model = NoiseModel(single_gate_error=1.0, channels=[NoiseChannel.BIT_FLIP])
    reg = QuantumRegister(2)
    # bit 0 is 0: neither the gate nor its noise runs
    model.run(reg, c, np.random.default_rng(0))
    assert reg.state.probability(0) == pytest.approx(1.0)
    reg.classical_bits[0] = 1
    # x then a certain bit flip cancel out
    model.run(reg, c, np.random.default_rng(0))
    assert reg.state.probability(0) == pytest.approx(1.0)
    assert reg.gate_history == ["x(1)", "x(1)"]
