"""
Unit tests for the Terraform apply executor (mocked and real child processes).

Covers the output tee (live status lines + per-stream buffers) and the
terminal-result contract.
"""

from __future__ import annotations

import logging
import sys
import threading
from pathlib import Path

import pytest

from reconciler.adapters.terraform import TerraformCli
from reconciler.core.exceptions import StackRuntimeError
from reconciler.core.services.terraform_actions import ApplyResult, apply_stack
from reconciler.core.services.terraform_vars import VAR_FILE_NAME


class TestApplyStack:
    def test_success_collects_stdout(self, mock_runner, stack_root: Path):
        mock_runner.set_child(stdout="Refreshing...\nApply complete! Resources: 1 added.\n")
        lines: list[str] = []

        result = apply_stack(mock_runner, stack_root, {}, "1.5.7", on_line=lines.append)

        assert isinstance(result, ApplyResult)
        assert result.stdout == "Refreshing...\nApply complete! Resources: 1 added.\n"
        assert result.stderr == ""
        assert lines == ["Refreshing...", "Apply complete! Resources: 1 added."]

    def test_args_and_cwd(self, mock_runner, stack_root: Path):
        apply_stack(mock_runner, stack_root, {"region": "eu"}, "1.6.0", on_line=lambda _: None)
        call = mock_runner.calls("apply")[0]
        assert call.method == "spawn"
        assert call.args == [
            "apply", "-auto-approve", "-input=false",
            "-var-file", str((stack_root / VAR_FILE_NAME).resolve()),
        ]
        assert call.cwd == stack_root
        assert call.version == "1.6.0"

    def test_no_variables_no_var_file(self, mock_runner, stack_root: Path):
        apply_stack(mock_runner, stack_root, {}, "1.5.7", on_line=lambda _: None)
        assert mock_runner.calls("apply")[0].args == ["apply", "-auto-approve", "-input=false"]
        assert not (stack_root / VAR_FILE_NAME).exists()

    def test_both_streams_reach_status_line(self, mock_runner, stack_root: Path):
        mock_runner.set_child(stdout="out 1\nout 2\n", stderr="warn 1\n")
        lines: list[str] = []

        apply_stack(mock_runner, stack_root, {}, "1.5.7", on_line=lines.append)

        assert sorted(lines) == ["out 1", "out 2", "warn 1"]
        # Order within a stream is preserved
        assert lines.index("out 1") < lines.index("out 2")

    def test_failure_raises_with_buffers_and_code(self, mock_runner, stack_root: Path):
        mock_runner.set_child(stdout="Planning...\n", stderr="Error: quota exceeded\n", exit_code=1)

        with pytest.raises(StackRuntimeError) as exc_info:
            apply_stack(mock_runner, stack_root, {}, "1.5.7", on_line=lambda _: None)

        err = exc_info.value
        assert isinstance(err, RuntimeError)
        assert "Error when applying Terraform stack" in err.message
        assert "quota exceeded" in err.message
        assert err.detail == {
            "stdout": "Planning...\n",
            "stderr": "Error: quota exceeded\n",
            "code": 1,
        }

    def test_spawn_error_propagates(self, mock_runner, stack_root: Path):
        mock_runner.set_spawn_error(FileNotFoundError("terraform"))
        lines: list[str] = []

        with pytest.raises(FileNotFoundError):
            apply_stack(mock_runner, stack_root, {}, "1.5.7", on_line=lines.append)
        assert lines == []

    def test_default_status_line_logs(self, mock_runner, stack_root: Path, caplog):
        mock_runner.set_child(stdout="Apply complete!\n")
        with caplog.at_level(logging.INFO, logger="reconciler.core.services.terraform_actions"):
            apply_stack(mock_runner, stack_root, {}, "1.5.7")
        assert any("→ Apply complete!" in r.getMessage() for r in caplog.records)

    def test_failing_status_line_keeps_buffering(self, mock_runner, stack_root: Path):
        mock_runner.set_child(stdout="line 1\nline 2\nline 3\n")
        seen: list[str] = []

        def on_line(line: str) -> None:
            seen.append(line)
            raise ValueError("terminal gone")

        with pytest.raises(ValueError, match="terminal gone"):
            apply_stack(mock_runner, stack_root, {}, "1.5.7", on_line=on_line)
        # Forwarding stops after the first failure
        assert seen == ["line 1"]

    def test_apply_failure_wins_over_status_line_error(self, mock_runner, stack_root: Path):
        mock_runner.set_child(stdout="Planning...\n", stderr="Error: boom\n", exit_code=1)

        def on_line(line: str) -> None:
            raise ValueError("terminal gone")

        with pytest.raises(StackRuntimeError) as exc_info:
            apply_stack(mock_runner, stack_root, {}, "1.5.7", on_line=on_line)
        assert exc_info.value.detail["stdout"] == "Planning...\n"
        assert exc_info.value.detail["stderr"] == "Error: boom\n"
        assert isinstance(exc_info.value.__cause__, ValueError)


# ── Real child process ───────────────────────────────────────────────

# Well past the OS pipe buffer (64 KiB on Linux)
BIG_OUTPUT = 200_000


def _fake_terraform(tmp_path: Path, body: str) -> Path:
    script = tmp_path / "terraform"
    script.write_text("#!/bin/sh\n" + body)
    script.chmod(0o755)
    return script


def _apply_with_deadline(runner, root: Path, on_line, timeout: float = 30) -> dict:
    """Run apply_stack in a thread and record whether it finished in time."""
    outcome: dict = {}

    def run() -> None:
        try:
            outcome["result"] = apply_stack(runner, root, {}, "1.5.7", on_line=on_line)
        except Exception as e:
            outcome["error"] = e

    worker = threading.Thread(target=run, daemon=True)
    worker.start()
    worker.join(timeout)
    outcome["hung"] = worker.is_alive()
    return outcome


@pytest.mark.skipif(sys.platform == "win32", reason="needs /bin/sh")
class TestApplyStackRealProcess:
    def test_non_utf8_output_then_large_output(self, stack_root: Path, tmp_path: Path):
        script = _fake_terraform(tmp_path, (
            "printf 'caf\\351\\n'\n"
            f"head -c {BIG_OUTPUT} /dev/zero | tr '\\0' 'x'\n"
            "printf '\\nError: quota exceeded\\n' >&2\n"
            "exit 1\n"
        ))
        lines: list[str] = []

        outcome = _apply_with_deadline(TerraformCli(binary=str(script)), stack_root, lines.append)

        assert outcome["hung"] is False
        err = outcome["error"]
        assert isinstance(err, StackRuntimeError)
        assert err.detail["code"] == 1
        assert err.detail["stdout"].startswith("caf\ufffd\n")
        assert len(err.detail["stdout"]) == len("caf\ufffd\n") + BIG_OUTPUT
        assert "Error: quota exceeded" in err.detail["stderr"]
        assert "caf\ufffd" in lines

    def test_failing_status_line_does_not_block_child(self, stack_root: Path, tmp_path: Path):
        script = _fake_terraform(tmp_path, (
            "echo 'Applying...'\n"
            f"head -c {BIG_OUTPUT} /dev/zero | tr '\\0' 'x'\n"
            f"head -c {BIG_OUTPUT} /dev/zero | tr '\\0' 'y' >&2\n"
            "exit 0\n"
        ))

        def on_line(line: str) -> None:
            raise ValueError("terminal gone")

        outcome = _apply_with_deadline(TerraformCli(binary=str(script)), stack_root, on_line)

        assert outcome["hung"] is False
        assert isinstance(outcome["error"], ValueError)
