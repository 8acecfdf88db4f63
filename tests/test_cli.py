from __future__ import annotations

from pathlib import Path

from flexglove.cli import main


def test_simulated_run_prints_samples_and_summary(tmp_path: Path, capsys) -> None:
    cfg = tmp_path / "glove.yaml"
    cfg.write_text("simulation_interval_s: 0.01\nmin_report_samples: 3\n", encoding="utf-8")

    assert main(["--config", str(cfg), "--simulate", "--seconds", "0.2", "--patient", "Ana"]) == 0

    out = capsys.readouterr().out
    sample_lines = [line for line in out.splitlines() if not line.startswith("#")]
    assert len(sample_lines) >= 3
    assert all(len(line.split(",")) == 6 for line in sample_lines)
    assert "# patient=Ana device=simulation" in out
    assert "# samples=" in out


def test_short_run_reports_insufficient_samples(capsys) -> None:
    assert main(["--simulate", "--seconds", "0"]) == 0
    captured = capsys.readouterr()
    assert "At least 5 samples" in captured.err
