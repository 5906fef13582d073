import json
import logging
import os
import signal
import subprocess
import sys
import time
from pathlib import Path

import pytest

from block_pick_place.cli import build_parser, main

SRC_DIR = Path(__file__).parent.parent / "src"


def test_interactive_run_writes_report(tmp_path):
    report_path = tmp_path / "out" / "report.json"
    exit_code = main(
        [
            "--interactive",
            "--object", "A:0.55:-0.4",
            "--object", "B:0.65:-0.4:90",
            "--report", str(report_path),
            "--log-level", "WARNING",
        ],
        input_fn=lambda question: "n",
    )

    assert exit_code == 0
    report = json.loads(report_path.read_text())
    assert report["final_state"] == "stopped"
    assert report["cycles_completed"] == 1
    assert report["pick_attempts"] == {"A": 1, "B": 1}
    assert [item["id"] for item in report["work_items"]] == ["A", "B"]
    start = report["work_items"][0]["start_pose"]["position"]
    goal = report["work_items"][0]["goal_pose"]["position"]
    assert goal == pytest.approx([start[0], start[1] + 0.2, start[2]])


def test_operator_abort_exits_nonzero(tmp_path):
    exit_code = main(
        ["--interactive", "--failure-rate", "1.0", "--object", "A:0.55:-0.4", "--log-level", "ERROR"],
        input_fn=lambda question: "n",
    )
    assert exit_code == 1


def test_invalid_settings_exit_with_usage_error():
    assert main(["--retry-delay", "-3", "--log-level", "ERROR"]) == 2
    assert main(["--failure-rate", "1.5", "--log-level", "ERROR"]) == 2


@pytest.mark.parametrize("body", ["validate: 1\n", "grasp:\n  block_size: big\n", "auto_retry_delay_seconds: 2.5\n"])
def test_malformed_config_file_exits_with_usage_error(tmp_path, body):
    path = tmp_path / "bad.yaml"
    path.write_text(body)
    assert main(["--config", str(path), "--log-level", "ERROR"]) == 2


def test_quiet_run_logs_to_file_only(tmp_path):
    log_file = tmp_path / "run.log"
    root = logging.getLogger()
    try:
        exit_code = main(
            ["--interactive", "--object", "A:0.55:-0.4", "--quiet", "--log-file", str(log_file)],
            input_fn=lambda question: "n",
        )
    finally:
        for handler in list(root.handlers):
            if isinstance(handler, logging.FileHandler) and Path(handler.baseFilename) == log_file.resolve():
                root.removeHandler(handler)
                handler.close()

    assert exit_code == 0
    assert "Starting pick and place of 1 objects" in log_file.read_text()


def test_signal_handlers_restored_after_run():
    before = signal.getsignal(signal.SIGINT)
    main(["--interactive", "--object", "A:0.55:-0.4", "--log-level", "ERROR"], input_fn=lambda question: "n")
    assert signal.getsignal(signal.SIGINT) is before


@pytest.mark.skipif(sys.platform == "win32", reason="needs POSIX signal delivery")
def test_sigint_at_retry_prompt_ends_run():
    argv = ["--interactive", "--failure-rate", "1.0", "--object", "A:0.55:-0.4"]
    code = f"from block_pick_place.cli import main; raise SystemExit(main({argv!r}))"
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(p for p in (str(SRC_DIR), env.get("PYTHONPATH")) if p)

    proc = subprocess.Popen(
        [sys.executable, "-c", code],
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        env=env,
        text=True,
    )
    try:
        # The failure is logged just before the operator is asked
        for line in proc.stdout:
            if "Pick failed" in line:
                break
        time.sleep(0.5)
        proc.send_signal(signal.SIGINT)
        output, _ = proc.communicate(timeout=10)
    finally:
        if proc.poll() is None:
            proc.kill()
            proc.wait()

    assert proc.returncode == 1, output
    assert "Traceback" not in output


def test_parser_mode_flags():
    parser = build_parser()
    assert parser.parse_args([]).auto_retry is None
    assert parser.parse_args(["--auto-retry"]).auto_retry is True
    assert parser.parse_args(["--interactive"]).auto_retry is False
    assert parser.parse_args(["--quiet"]).quiet is True
