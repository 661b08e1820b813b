"""Tests for process exit hooks, in-process and in a child interpreter."""

import os
import signal
import subprocess
import sys
import textwrap
from datetime import datetime
from pathlib import Path

import pytest

from daylog.shutdown import HOOKED_SIGNALS, ExitHooks

PROJECT_ROOT = Path(__file__).resolve().parent.parent


class TestExitHooks:
    """Tests for ExitHooks."""

    def test_run_invokes_callback_once(self):
        calls = []
        hooks = ExitHooks(lambda: calls.append("closed"))

        hooks.run()
        hooks.run()

        assert calls == ["closed"]
        assert hooks.fired

    def test_callback_failure_is_contained(self, caplog):
        def explode():
            raise RuntimeError("boom")

        hooks = ExitHooks(explode)
        hooks.run()

        assert "Exit hook callback failed" in caplog.text

    def test_install_and_remove_restore_signal_handlers(self):
        previous = {signum: signal.getsignal(signum) for signum in HOOKED_SIGNALS}
        hooks = ExitHooks(lambda: None)

        hooks.install()
        try:
            assert hooks.installed
            for signum in HOOKED_SIGNALS:
                assert signal.getsignal(signum) == hooks._handle_signal
        finally:
            hooks.remove()

        assert not hooks.installed
        for signum, handler in previous.items():
            assert signal.getsignal(signum) == handler

    def test_signal_with_default_disposition_exits(self):
        calls = []
        hooks = ExitHooks(lambda: calls.append("closed"))
        hooks._previous_handlers[signal.SIGTERM] = signal.SIG_DFL

        with pytest.raises(SystemExit) as exc_info:
            hooks._handle_signal(signal.SIGTERM, None)

        assert calls == ["closed"]
        assert exc_info.value.code == 128 + signal.SIGTERM

    def test_signal_chains_to_previous_handler(self):
        calls = []
        hooks = ExitHooks(lambda: calls.append("closed"))
        hooks._previous_handlers[signal.SIGTERM] = lambda signum, frame: calls.append(signum)

        hooks._handle_signal(signal.SIGTERM, None)

        assert calls == ["closed", signal.SIGTERM]

    def test_signal_previously_ignored(self):
        calls = []
        hooks = ExitHooks(lambda: calls.append("closed"))
        hooks._previous_handlers[signal.SIGTERM] = signal.SIG_IGN

        hooks._handle_signal(signal.SIGTERM, None)

        assert calls == ["closed"]


def _child_env(base_dir: Path) -> dict:
    env = os.environ.copy()
    env["PYTHONPATH"] = os.pathsep.join(
        filter(None, [str(PROJECT_ROOT), env.get("PYTHONPATH")])
    )
    env["DAYLOG_BASE_DIR"] = str(base_dir)
    env["DAYLOG_RUN_NAME"] = "child"
    env["DAYLOG_INSTALL_EXIT_HOOKS"] = "true"
    return env


def _today_dir(base_dir: Path) -> Path:
    return base_dir / datetime.now().strftime("%Y-%m-%d")


class TestProcessTermination:
    """The summary is written when the process ends without shutdown()."""

    def test_normal_exit_writes_summary(self, tmp_path):
        script = textwrap.dedent(
            """
            import daylog

            log = daylog.get_logger("worker")
            log.info("working")
            log.error("failed item")
            """
        )
        result = subprocess.run(
            [sys.executable, "-c", script],
            env=_child_env(tmp_path),
            capture_output=True,
            text=True,
            timeout=60,
        )

        assert result.returncode == 0, result.stderr
        info = (_today_dir(tmp_path) / "info.log").read_text()
        assert info.count("Start of run for child") == 1
        assert info.count("End of run for child") == 1
        assert "  - ERROR: 1\n  - INFO: 1\n" in info

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals only")
    def test_sigterm_writes_summary(self, tmp_path):
        script = textwrap.dedent(
            """
            import time
            import daylog

            daylog.get_logger("worker").warn("waiting for signal")
            print("ready", flush=True)
            time.sleep(60)
            """
        )
        process = subprocess.Popen(
            [sys.executable, "-c", script],
            env=_child_env(tmp_path),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
        try:
            for line in process.stdout:
                if line.strip() == "ready":
                    break
            process.send_signal(signal.SIGTERM)
            process.wait(timeout=30)
        finally:
            if process.poll() is None:
                process.kill()
                process.wait()
            process.stdout.close()
            process.stderr.close()

        assert process.returncode == 128 + signal.SIGTERM
        warn = (_today_dir(tmp_path) / "warn.log").read_text()
        assert warn.count("End of run for child") == 1
        assert "  - WARN: 1\n" in warn

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals only")
    @pytest.mark.parametrize(
        "held_lock",
        [
            "session.execution._lock",
            "session.pool._lock",
            "session.pool.handler_for(Severity.WARN).lock",
        ],
    )
    def test_sigterm_while_logging_lock_is_held(self, tmp_path, held_lock):
        """A signal landing mid-log call still writes the summary and exits."""
        script = textwrap.dedent(
            f"""
            import os
            import signal

            from daylog import LogSession, Severity

            session = LogSession().start()
            session.get_logger("worker").warn("before signal")
            with {held_lock}:
                os.kill(os.getpid(), signal.SIGTERM)
                for _ in range(1000):
                    pass
            """
        )
        try:
            result = subprocess.run(
                [sys.executable, "-c", script],
                env=_child_env(tmp_path),
                capture_output=True,
                text=True,
                timeout=30,
            )
        except subprocess.TimeoutExpired:
            pytest.fail(f"Shutdown hung while {held_lock} was held")

        assert result.returncode == 128 + signal.SIGTERM, result.stderr
        warn = (_today_dir(tmp_path) / "warn.log").read_text()
        assert warn.count("End of run for child") == 1
        assert "  - WARN: 1\n" in warn
