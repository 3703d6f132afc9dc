"""Tests for herald.cli: entry point, ``routes`` and ``serve``."""

import sys
from pathlib import Path
from typing import Any

import pytest
import yaml
from conftest import CONFIG, SCHEMA

from herald.cli import main
from herald.cli._resolve import resolve_object
from herald.errors import BootstrapStageError

APP_MODULE = '''
def controllers(context):
    return {"ping": lambda request: "pong"}

services = {"clock": lambda context: "tick"}
'''


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A config file next to its schema and application module."""
    monkeypatch.setattr(sys, "path", list(sys.path))
    monkeypatch.delitem(sys.modules, "herald_cli_app", raising=False)

    schema = tmp_path / "api" / "swagger" / "swagger.yaml"
    schema.parent.mkdir(parents=True)
    schema.write_text(yaml.safe_dump(SCHEMA), encoding="utf-8")
    (tmp_path / "herald_cli_app.py").write_text(APP_MODULE, encoding="utf-8")

    config = tmp_path / "config.yaml"
    config.write_text(
        yaml.safe_dump(
            {
                **CONFIG,
                "app": {
                    "controllers": "herald_cli_app:controllers",
                    "services": "herald_cli_app:services",
                },
                "server": {"port": 9001},
            }
        ),
        encoding="utf-8",
    )
    return config


class FakeTransport:
    def __init__(self) -> None:
        self.served: tuple[Any, Any] | None = None

    async def serve(self, host: Any = None, port: Any = None) -> None:
        self.served = (host, port)


class FakeContext:
    def __init__(self, transport: FakeTransport) -> None:
        self.transport = transport

    def require(self, value: Any, name: str) -> Any:
        return value


class TestCLIParsing:
    def test_help_exits_zero(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--help"])
        assert exc_info.value.code == 0

    @pytest.mark.parametrize("command", ["serve", "routes"])
    def test_config_is_required(self, command: str) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([command])
        assert exc_info.value.code == 2

    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0
        assert "herald" in capsys.readouterr().out


class TestRoutes:
    def test_lists_operations(self, project: Path, capsys: pytest.CaptureFixture[str]) -> None:
        main(["routes", "--config", str(project)])
        out = capsys.readouterr().out
        assert out.splitlines()[0].split() == ["METHOD", "PATH", "OPERATION", "CONTROLLER"]
        assert any(line.split() == ["GET", "/api/items", "listItems", "Items"] for line in out.splitlines())
        assert any(line.split() == ["GET", "/api/ping", "ping", "-"] for line in out.splitlines())

    def test_missing_config(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["routes", "--config", str(tmp_path / "nope.yaml")])
        assert exc_info.value.code == 1
        assert "Configuration file not found" in capsys.readouterr().err

    def test_missing_schema(self, project: Path, capsys: pytest.CaptureFixture[str]) -> None:
        (project.parent / "api" / "swagger" / "swagger.yaml").unlink()
        with pytest.raises(SystemExit) as exc_info:
            main(["routes", "--config", str(project)])
        assert exc_info.value.code == 1
        assert "Error:" in capsys.readouterr().err


class TestServe:
    def test_bootstraps_and_serves(
        self, project: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        transport = FakeTransport()
        seen: dict[str, Any] = {}

        async def fake_bootstrap(configuration: Any, **kwargs: Any) -> FakeContext:
            seen.update(kwargs)
            return FakeContext(transport)

        monkeypatch.setattr("herald.cli._serve.bootstrap", fake_bootstrap)
        main(["serve", "--config", str(project), "--port", "9100"])

        assert transport.served == (None, 9100)
        assert seen["app_config"].port == 9001
        assert Path(seen["app_config"].schema_path).is_absolute()
        assert seen["services"]["clock"](None) == "tick"
        assert seen["controllers"](None)["ping"](None) == "pong"

    def test_bootstrap_failure_exits_one(
        self,
        project: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        async def failing_bootstrap(configuration: Any, **kwargs: Any) -> FakeContext:
            raise BootstrapStageError("cache", "connection refused")

        monkeypatch.setattr("herald.cli._serve.bootstrap", failing_bootstrap)
        with pytest.raises(SystemExit) as exc_info:
            main(["serve", "--config", str(project)])
        assert exc_info.value.code == 1
        assert "Bootstrap stage 'cache' failed" in capsys.readouterr().err

    def test_bad_controllers_reference(
        self, project: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["serve", "--config", str(project), "--controllers", "herald_cli_app:missing"])
        assert exc_info.value.code == 1
        assert "missing" in capsys.readouterr().err


class TestResolveObject:
    def test_dotted_attribute(self) -> None:
        assert resolve_object("herald.errors:NotFound.__name__") == "NotFound"

    def test_requires_attribute(self) -> None:
        with pytest.raises(ValueError, match="module:attribute"):
            resolve_object("herald.errors")

    def test_missing_module(self) -> None:
        with pytest.raises(ModuleNotFoundError):
            resolve_object("nonexistent_module_xyz:app")

    def test_app_dir_on_path(self, project: Path) -> None:
        factory = resolve_object("herald_cli_app:controllers", app_dir=project.parent)
        assert callable(factory)
