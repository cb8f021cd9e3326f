import math, cmath
import numpy as np
import pytest

from qops.qubit import Qubit, BlochCoordinates


def test_basis_states():
    assert Qubit.zero().prob_zero() == pytest.approx(1.0, abs=1e-10)
    assert Qubit.one().prob_one() == pytest.approx(1.0, abs=1e-10)
    for q in (Qubit.plus(), Qubit.minus(), Qubit.plus_i(), Qubit.minus_i()):
        assert q.prob_zero() == pytest.approx(0.5, abs=1e-10)
        assert q.is_normalized()


def test_to_bloch_known_points():
    assert Qubit.zero().to_bloch().theta == pytest.approx(0.0, abs=1e-9)
    assert Qubit.one().to_bloch().theta == pytest.approx(math.pi, abs=1e-9)
    b = Qubit.plus_i().to_bloch()
    assert b.theta == pytest.approx(math.pi / 2, abs=1e-9)
    assert b.phi == pytest.approx(math.pi / 2, abs=1e-9)
    assert Qubit.minus().to_bloch().phi == pytest.approx(math.pi, abs=1e-9)
    # negative phases are wrapped into [0, 2pi)
    assert Qubit.minus_i().to_bloch().phi == pytest.approx(3 * math.pi / 2, abs=1e-9)


def test_bloch_round_trip_up_to_global_phase():
    rng = np.random.default_rng(7)
    for _ in range(50):
        a, b = rng.normal(size=2) + 1j * rng.normal(size=2)
        q = Qubit(a, b).normalize()
        # arbitrary global phase must not matter
        g = cmath.exp(1j * rng.uniform(0, 2 * math.pi))
        q = Qubit(q.alpha * g, q.beta * g)
        back = Qubit.from_coordinates(q.to_bloch())
        assert back.fidelity(q) == pytest.approx(1.0, abs=1e-9)


def test_from_bloch_amplitudes():
    q = Qubit.from_bloch(math.pi / 3, 0.7)
    assert q.alpha.imag == 0.0
    assert q.alpha.real == pytest.approx(math.cos(math.pi / 6))
    assert q.beta == pytest.approx(cmath.rect(math.sin(math.pi / 6), 0.7))


def test_normalize_degenerate_is_noop():
    q = Qubit(0, 0).normalize()
    assert q.alpha == 0 and q.beta == 0
    q = Qubit(3, 4).normalize()
    assert q.alpha == pytest.approx(0.6) and q.beta == pytest.approx(0.8)


def test_fidelity_and_cartesian():
    assert Qubit.zero().fidelity(Qubit.one()) == pytest.approx(0.0)
    assert Qubit.zero().fidelity(Qubit.plus()) == pytest.approx(0.5)
    x, y, z = Qubit.plus().to_bloch().to_cartesian()
    assert (x, y, z) == pytest.approx((1.0, 0.0, 0.0), abs=1e-9)
    c = BlochCoordinates.from_cartesian(0.0, -1.0, 0.0)
    assert c.theta == pytest.approx(math.pi / 2)
    assert c.phi == pytest.approx(3 * math.pi / 2)


def test_tiny_negative_phase_stays_below_two_pi():
    q = Qubit(complex(math.sqrt(0.5)), complex(math.sqrt(0.5), -1e-17))
    phi = q.to_bloch().phi
    assert 0.0 <= phi < 2 * math.pi
    assert BlochCoordinates.from_cartesian(1.0, -1e-17, 0.0).phi < 2 * math.pi
