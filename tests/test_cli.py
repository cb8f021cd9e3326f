import json

from qops.circuit import Circuit
from qops.cli import main


def _write(tmp_path, circuit):
    src = tmp_path / "c.qasm"
    src.write_text(circuit.to_qasm())
    return str(src)


def test_qasm_command(capsys):
    assert main(["qasm", "bell"]) == 0
    out = capsys.readouterr().out
    assert "cx q[0], q[1];" in out


def test_qasm_command_writes_file(tmp_path, capsys):
    out = tmp_path / "sub" / "ghz.qasm"
    assert main(["qasm", "ghz", "3", "-o", str(out)]) == 0
    assert "[ok] wrote" in capsys.readouterr().out
    assert "qreg q[3];" in out.read_text()


def test_run_command(tmp_path, capsys):
    src = _write(tmp_path, Circuit.bell_state())
    assert main(["run", src, "--shots", "200", "--seed", "1"]) == 0
    out = capsys.readouterr().out
    assert "'00'" in out and "'11'" in out and "'01'" not in out

    assert main(["run", src, "--shots", "50", "--seed", "1", "--json"]) == 0
    rec = json.loads(capsys.readouterr().out)
    assert sum(rec["counts"].values()) == 50


def test_run_with_noise(tmp_path, capsys):
    src = _write(tmp_path, Circuit.ghz_state(3))
    assert main(["run", src, "--shots", "100", "--seed", "3", "--noise", "noisy"]) == 0
    assert capsys.readouterr().out.startswith("{")


def test_expect_command(tmp_path, capsys):
    src = _write(tmp_path, Circuit.bell_state())
    assert main(["expect", src, "ZZ"]) == 0
    out = capsys.readouterr().out
    assert "EXPECT ZZ = 1.000000" in out
    assert "VAR ZZ = 0.000000" in out


def test_info_command(tmp_path, capsys):
    src = _write(tmp_path, Circuit.bell_state())
    assert main(["info", src]) == 0
    out = capsys.readouterr().out
    assert "depth: 2" in out and "gate_count: 2" in out
    assert main(["info", src, "--json"]) == 0
    rec = json.loads(capsys.readouterr().out)
    assert rec["gate_counts"] == {"h": 1, "cx": 1}


def test_errors_return_nonzero(tmp_path, capsys):
    assert main(["run", str(tmp_path / "missing.qasm")]) == 1
    bad = tmp_path / "bad.qasm"
    bad.write_text("qreg q[1];\nh q[3];\n")
    assert main(["info", str(bad)]) == 1
    assert main(["expect", _write(tmp_path, Circuit.bell_state()), "Z"]) == 1


def test_run_draws_noise_and_shots_from_one_generator(tmp_path, capsys, monkeypatch):
    import numpy as np
    made = []
    real = np.random.default_rng

    def counting(seed=None):
        made.append(seed)
        return real(seed)

    monkeypatch.setattr(np.random, "default_rng", counting)
    src = _write(tmp_path, Circuit.ghz_state(3))
    assert main(["run", src, "--shots", "64", "--seed", "7", "--noise", "noisy"]) == 0
    first = capsys.readouterr().out
    assert made == [7]
    assert main(["run", src, "--shots", "64", "--seed", "7", "--noise", "noisy"]) == 0
    assert capsys.readouterr().out == first
