from __future__ import annotations

from pathlib import Path

import pytest

from ec2exec import cli
from ec2exec.api.model import CommandResult, FailurePolicy
from ec2exec.core.exceptions import ProvisionError

pytestmark = [pytest.mark.unit]


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("ec2exec.config.GLOBAL_CONFIG_PATH", tmp_path / "no-defaults.toml")
    monkeypatch.delenv("PEM_PATH", raising=False)
    monkeypatch.delenv("AWS_REGION", raising=False)
    monkeypatch.delenv("AWS_DEFAULT_REGION", raising=False)


class FakeRun:
    def __init__(self, results=None, error=None) -> None:
        self.results = results or []
        self.error = error
        self.settings = None

    async def __call__(self, settings, console):
        self.settings = settings
        if self.error is not None:
            raise self.error
        return self.results


class TestOverrides:
    def test_only_given_flags(self):
        args = cli.build_parser().parse_args(["jobs.txt", "--region", "eu-west-1", "--continue-on-error"])
        assert cli._overrides(args) == {
            "aws": {"region": "eu-west-1"},
            "run": {"commands_file": "jobs.txt", "on_failure": "continue"},
        }

    def test_no_flags(self):
        assert cli._overrides(cli.build_parser().parse_args([])) == {}


class TestMain:
    def test_success(self, monkeypatch):
        fake = FakeRun(results=[CommandResult(command="whoami", output="ubuntu\n")])
        monkeypatch.setattr(cli, "run", fake)

        code = cli.main([
            "jobs.txt", "--key", "/k.pem", "--key-name", "grader",
            "--profile", "ops", "--max-attempts", "2",
        ])

        assert code == 0
        assert fake.settings.commands_file == Path("jobs.txt")
        assert fake.settings.key_path == Path("/k.pem")
        assert fake.settings.aws.key_name == "grader"
        assert fake.settings.aws.profile == "ops"
        assert fake.settings.retry.max_attempts == 2
        assert fake.settings.on_failure is FailurePolicy.ABORT

    def test_fatal_error_exit_status(self, monkeypatch, capsys):
        monkeypatch.setattr(cli, "run", FakeRun(error=ProvisionError("quota exceeded")))

        assert cli.main([]) == 1
        assert "error: quota exceeded" in capsys.readouterr().err

    def test_failed_command_under_continue(self, monkeypatch):
        results = [
            CommandResult(command="false", output="", exit_status=1),
            CommandResult(command="true", output=""),
        ]
        monkeypatch.setattr(cli, "run", FakeRun(results=results))
        assert cli.main(["--continue-on-error"]) == 1

    def test_bad_config(self, monkeypatch, tmp_path, capsys):
        fake = FakeRun()
        monkeypatch.setattr(cli, "run", fake)

        assert cli.main(["--config", str(tmp_path / "missing.toml")]) == 1
        assert fake.settings is None
        assert "error:" in capsys.readouterr().err

    def test_interrupt(self, monkeypatch):
        monkeypatch.setattr(cli, "run", FakeRun(error=KeyboardInterrupt()))
        assert cli.main([]) == 130

    def test_usage_error(self):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--max-attempts", "many"])
        assert exc_info.value.code == 2
