from .errors import (CircuitError, InvalidQubitIndex, SameQubitIndex, DimensionMismatch,
                     InvalidState, NonUnitaryGate, InvalidParameter, MaxDepthExceeded,
                     MeasurementError, NormalizationError)
from .qubit import Qubit, BlochCoordinates
from .gates import Gate, GateKind, ParameterizedGate, gate_from_name
from .circuit import Circuit, CircuitInstruction, ClassicalCondition
from .register import StateVector, QuantumRegister, MAX_QUBITS
from .measurement import (MeasurementBasis, MeasurementResult, MeasurementStatistics,
                          measure_qubits, measure_all, expectation_pauli, variance_pauli,
                          single_qubit_tomography)
from .noise import NoiseChannel, NoiseModel, DepolarizingNoise, AmplitudeDamping
from .qasm import from_qasm

__version__ = "0.1.0"

__all__ = [
    "CircuitError", "InvalidQubitIndex", "SameQubitIndex", "DimensionMismatch", "InvalidState",
    "NonUnitaryGate", "InvalidParameter", "MaxDepthExceeded", "MeasurementError",
    "NormalizationError",
    "Qubit", "BlochCoordinates", "Gate", "GateKind", "ParameterizedGate", "gate_from_name",
    "Circuit", "CircuitInstruction", "ClassicalCondition", "StateVector", "QuantumRegister", "MAX_QUBITS",
    "MeasurementBasis", "MeasurementResult", "MeasurementStatistics", "measure_qubits",
    "measure_all", "expectation_pauli", "variance_pauli", "single_qubit_tomography",
    "NoiseChannel", "NoiseModel", "DepolarizingNoise", "AmplitudeDamping", "from_qasm",
]
