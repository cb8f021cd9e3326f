# qops/errors.py
from __future__ import annotations


class CircuitError(Exception):
    """Base class for every error raised by the simulator core."""


class InvalidQubitIndex(CircuitError, IndexError):
    def __init__(self, index: int, size: int):
        self.index, self.size = index, size
        super().__init__(f"Invalid qubit index {index}, register has {size} qubits")


class SameQubitIndex(CircuitError, ValueError):
    def __init__(self, first: int, second: int):
        self.first, self.second = first, second
        super().__init__(
            f"Qubit indices must be different for multi-qubit gates: got {first} and {second}"
        )


class DimensionMismatch(CircuitError, ValueError):
    def __init__(self, expected: int, actual: int):
        self.expected, self.actual = expected, actual
        super().__init__(f"State vector dimension mismatch: expected {expected}, got {actual}")


class InvalidState(CircuitError, ValueError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid state: {reason}")


class NonUnitaryGate(CircuitError, ValueError):
    def __init__(self, deviation: float = float("nan")):
        self.deviation = deviation
        super().__init__(f"Gate matrix is not unitary (||U'U - I|| = {deviation:.3e})")


class InvalidParameter(CircuitError, ValueError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid parameter: {reason}")


class MaxDepthExceeded(CircuitError):
    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Circuit depth exceeded maximum: {limit}")


class MeasurementError(CircuitError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Measurement error: {reason}")


class NormalizationError(CircuitError, ValueError):
    def __init__(self, observed_norm: float):
        self.observed_norm = observed_norm
        super().__init__(f"Normalization error: state norm is {observed_norm}, expected 1.0")
