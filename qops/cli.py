import argparse, sys, json, logging
from pathlib import Path

import numpy as np

from .circuit import Circuit
from .errors import CircuitError
from .measurement import expectation_pauli, measure_all, variance_pauli
from .noise import NoiseModel
from .qasm import from_qasm
from .records import circuit_to_record, statistics_to_record
from .register import QuantumRegister

logger = logging.getLogger("qops")

CANNED = {
    "bell": lambda n: Circuit.bell_state(),
    "ghz": Circuit.ghz_state,
    "qft": Circuit.qft,
    "iqft": Circuit.iqft,
}


def _load(path: str) -> Circuit:
    return from_qasm(Path(path).read_text())


def _simulate(circuit: Circuit, args, rng: np.random.Generator) -> QuantumRegister:
    reg = QuantumRegister(circuit.num_qubits)
    if args.noise == "ideal":
        reg.apply_circuit(circuit)
    else:
        NoiseModel.preset(args.noise).run(reg, circuit, rng)
    return reg


def main(argv=None):
    ap = argparse.ArgumentParser(prog="qops")
    ap.add_argument("--log-level", default="WARNING",
                    choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_run = sub.add_parser("run", help="Simulate a QASM circuit and print counts")
    ap_run.add_argument("src")
    ap_run.add_argument("--shots", type=int, default=1024)
    ap_run.add_argument("--seed", type=int, default=None)
    ap_run.add_argument("--noise", default="ideal", choices=["ideal", "default", "ibm_like", "noisy"])
    ap_run.add_argument("--json", action="store_true", help="Print a JSON record")

    ap_ex = sub.add_parser("expect", help="Pauli expectation and variance of the final state")
    ap_ex.add_argument("src")
    ap_ex.add_argument("pauli")
    ap_ex.add_argument("--seed", type=int, default=None)
    ap_ex.add_argument("--noise", default="ideal", choices=["ideal", "default", "ibm_like", "noisy"])

    ap_q = sub.add_parser("qasm", help="Emit a canned circuit as OpenQASM 2")
    ap_q.add_argument("kind", choices=sorted(CANNED))
    ap_q.add_argument("n", type=int, nargs="?", default=2)
    ap_q.add_argument("-o", "--out", default="-")

    ap_info = sub.add_parser("info", help="Depth and gate counts of a QASM circuit")
    ap_info.add_argument("src")
    ap_info.add_argument("--json", action="store_true")

    args = ap.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    # one stream for noise trials and sampling
    rng = np.random.default_rng(getattr(args, "seed", None))
    try:
        if args.cmd == "run":
            circuit = _load(args.src)
            reg = _simulate(circuit, args, rng)
            stats = measure_all(reg, args.shots, rng)
            if args.json:
                print(json.dumps(statistics_to_record(stats), indent=2))
            else:
                print(dict(sorted(stats.counts.items())))

        elif args.cmd == "expect":
            reg = _simulate(_load(args.src), args, rng)
            print(f"EXPECT {args.pauli} = {expectation_pauli(reg, args.pauli):.6f}")
            print(f"VAR {args.pauli} = {variance_pauli(reg, args.pauli):.6f}")

        elif args.cmd == "qasm":
            qasm = CANNED[args.kind](args.n).to_qasm()
            if args.out == "-":
                sys.stdout.write(qasm)
            else:
                Path(args.out).parent.mkdir(parents=True, exist_ok=True)
                Path(args.out).write_text(qasm)
                print(f"[ok] wrote {args.out}")

        elif args.cmd == "info":
            circuit = _load(args.src)
            if args.json:
                rec = circuit_to_record(circuit)
                rec.pop("instructions")
                rec["gate_counts"] = circuit.gate_counts()
                print(json.dumps(rec, indent=2))
            else:
                print(f"qubits: {circuit.num_qubits}")
                print(f"depth: {circuit.depth()}")
                print(f"gate_count: {circuit.gate_count()}")
                print(f"gate_counts: {circuit.gate_counts()}")
    except (CircuitError, OSError) as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
