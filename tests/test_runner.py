"""
Tests for command runners — mock scripting and the subprocess runner.
"""

from pathlib import Path

from provisioner.adapters.mock import MockRunner
from provisioner.adapters.shell.command import EXIT_NOT_FOUND, EXIT_TIMEOUT, SubprocessRunner
from provisioner.core.models.command import CommandResult

# ── Mock Runner Tests ────────────────────────────────────────────────


class TestMockRunner:
    def test_default_success(self):
        mock = MockRunner(default_output="ok")
        r = mock.run(["docker", "ps"])
        assert r.ok
        assert r.output == "ok"
        assert mock.call_count == 1

    def test_set_failure(self):
        mock = MockRunner()
        mock.set_failure("git clone", exit_code=128, output="fatal")
        r = mock.run(["git", "clone", "-b", "main", "url", "/tmp/x"])
        assert r.exit_code == 128
        assert r.output == "fatal"
        assert r.command == ["git", "clone", "-b", "main", "url", "/tmp/x"]

    def test_longest_prefix_wins(self):
        mock = MockRunner()
        mock.set_failure("docker")
        mock.set_response("docker ps", output="ctr Up")
        assert mock.run(["docker", "ps"]).ok
        assert not mock.run(["docker", "build", "."]).ok

    def test_handler(self):
        mock = MockRunner()
        mock.set_handler(
            "echo",
            lambda cmd, cwd: CommandResult.success(cmd, output=" ".join(cmd[1:]), cwd=cwd),
        )
        r = mock.run(["echo", "a", "b"], cwd="/w")
        assert r.output == "a b"
        assert r.cwd == "/w"

    def test_call_log(self, tmp_path: Path):
        mock = MockRunner()
        mock.run(["git", "--version"], cwd=tmp_path)
        mock.run(["docker", "ps"])
        assert mock.call_log == [(["git", "--version"], str(tmp_path)), (["docker", "ps"], None)]
        assert mock.commands == ["git --version", "docker ps"]
        assert mock.ran("docker")
        assert not mock.ran("docker build")

    def test_availability(self):
        mock = MockRunner(available=("git",))
        assert mock.is_available("git")
        assert not mock.is_available("docker")
        mock.set_available("docker")
        assert mock.is_available("docker")
        mock.set_available("git", False)
        assert not mock.is_available("git")

    def test_reset(self):
        mock = MockRunner()
        mock.set_failure("x")
        mock.run(["x"])
        mock.reset()
        assert mock.call_count == 0
        assert mock.run(["x"]).ok


# ── Subprocess Runner Tests ──────────────────────────────────────────


class TestSubprocessRunner:
    def test_success(self):
        r = SubprocessRunner().run(["sh", "-c", "echo hello"])
        assert r.ok
        assert r.output == "hello"

    def test_non_zero_exit(self):
        r = SubprocessRunner().run(["sh", "-c", "echo partial; exit 3"])
        assert r.exit_code == 3
        assert r.output == "partial"

    def test_stderr_merged(self):
        r = SubprocessRunner().run(["sh", "-c", "echo oops 1>&2"])
        assert r.output == "oops"

    def test_missing_binary(self):
        r = SubprocessRunner().run(["definitely-not-a-real-binary-xyz"])
        assert r.exit_code == EXIT_NOT_FOUND
        assert "Command not found" in r.output

    def test_timeout(self):
        r = SubprocessRunner().run(["sleep", "5"], timeout=1)
        assert r.exit_code == EXIT_TIMEOUT
        assert "timed out" in r.output

    def test_cwd(self, tmp_path: Path):
        r = SubprocessRunner().run(["pwd"], cwd=tmp_path)
        assert Path(r.output).resolve() == tmp_path.resolve()
        assert r.cwd == str(tmp_path)

    def test_is_available(self):
        runner = SubprocessRunner()
        assert runner.is_available("sh")
        assert not runner.is_available("definitely-not-a-real-binary-xyz")
        assert runner.name == "subprocess"
