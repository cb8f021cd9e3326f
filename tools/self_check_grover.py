# tools/self_check_grover.py
import numpy as np

from qops import gates as g
from qops.circuit import Circuit
from qops.measurement import measure_all
from qops.register import QuantumRegister


def idx_msb(bitstr: str) -> int:
    # leftmost char = qubit n-1, q[0] is LSB
    n = len(bitstr)
    idx = 0
    for i, b in enumerate(bitstr):
        if b == '1':
            idx |= 1 << (n - 1 - i)
    return idx


def idx_lsb(bitstr: str) -> int:
    # rightmost char = MSB (WRONG for our convention, but good to compare)
    idx = 0
    for i, b in enumerate(reversed(bitstr)):
        if b == '1':
            idx |= 1 << i
    return idx


def grover_circuit(n: int, marked: str) -> Circuit:
    dim = 1 << n
    oracle = np.eye(dim, dtype=complex)
    oracle[idx_msb(marked), idx_msb(marked)] = -1
    cz_all = g.z()
    for _ in range(n - 1):
        cz_all = g.controlled(cz_all)
    msb_first = list(range(n - 1, -1, -1))

    c = Circuit(n, name=f"grover_{marked}").h_all()
    c.add_gate(g.Gate.custom("oracle", oracle), msb_first)
    c.h_all().x_all()
    c.add_gate(cz_all, msb_first)
    return c.x_all().h_all()


def run_once(n=3, marked="101", shots=200, seed=1):
    reg = QuantumRegister(n)
    reg.apply_circuit(grover_circuit(n, marked))
    psi = reg.amplitudes

    msb_idx = idx_msb(marked)
    lsb_idx = idx_lsb(marked)
    stats = measure_all(reg, shots, np.random.default_rng(seed))

    print("=== Grover Self-Check ===")
    print(f"n={n}, marked='{marked}'")
    print(f"Index (MSB order)  : {msb_idx}")
    print(f"Index (LSB order)  : {lsb_idx}")
    print(f"|amp|^2 @ MSB index: {abs(psi[msb_idx])**2:.6f}")
    print(f"|amp|^2 @ LSB index: {abs(psi[lsb_idx])**2:.6f}")
    print(f"Counts (shots={shots}): {dict(sorted(stats.counts.items()))}")
    print("Top outcomes (prob):")
    top = sorted(stats.probabilities().items(), key=lambda kv: kv[1], reverse=True)[:8]
    for k, p in top:
        print(f"  {k}: {p:.3f}")
    if stats.counts.get(marked, 0) == 0:
        print("NOTE: marked bitstring did not appear in samples.")
        print("      If |amp|^2@MSB is high but samples miss it, increase shots.")
    print("=========================\n")


if __name__ == "__main__":
    # one Grover iterate on 3 qubits puts ~78% on the marked item
    run_once(n=3, marked="101", shots=256)
    run_once(n=3, marked="011", shots=256)
