"""
tests/test_cli.py — CLI tests.

Tests commands using Click CliRunner; docker is replaced by a
fake runner injected through BuildEngine.
"""

import os
import sys
import subprocess
import shutil
import tempfile
import pytest
import yaml

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from click.testing import CliRunner

from hull.cli import main
from hull.build.engine import BuildEngine


LOCK = """\
version = 1

[manifest]
members = ["api", "core"]

[[package]]
name = "api"
source = { editable = "packages/api" }
dependencies = [{ name = "core" }, { name = "httpx" }]

[[package]]
name = "core"
source = { editable = "packages/core" }

[[package]]
name = "httpx"
source = { registry = "https://pypi.org/simple" }
"""


def _make_workspace() -> str:
    tmpdir = tempfile.mkdtemp()
    files = {
        "pyproject.toml": "[project]\nname = 'monorepo'\n",
        "uv.lock": LOCK,
        "packages/api/pyproject.toml": "[project]\nname = 'api'\n",
        "packages/api/src/api/__init__.py": "",
        "packages/core/pyproject.toml": "[project]\nname = 'core'\n",
        "packages/core/src/core/__init__.py": "",
    }
    for name, content in files.items():
        path = os.path.join(tmpdir, name)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w") as f:
            f.write(content)
    return tmpdir


@pytest.fixture(autouse=True)
def clean(tmp_path, monkeypatch):
    monkeypatch.setattr("hull.settings.HULL_HOME", tmp_path / "home")
    for var in ("HULL_BASE_IMAGE", "HULL_UV_IMAGE", "HULL_FRONTEND_IMAGE",
                "HULL_ASSETS_REGISTRY"):
        monkeypatch.delenv(var, raising=False)
    yield


@pytest.fixture
def ws():
    path = _make_workspace()
    yield path
    shutil.rmtree(path)


def _fake_engine(monkeypatch, returncode=0, stderr=""):
    calls = []

    def runner(argv, **kwargs):
        calls.append(argv)
        return subprocess.CompletedProcess(argv, returncode, "", stderr)

    monkeypatch.setattr(
        sys.modules["hull.build.pipeline"], "BuildEngine",
        lambda: BuildEngine(runner=runner),
    )
    return calls


runner = CliRunner()


class TestResolve:
    def test_resolve(self, ws):
        result = runner.invoke(main, ["resolve", "api", "-C", ws])
        assert result.exit_code == 0
        assert "api" in result.output
        assert "core" in result.output
        assert "packages/core" in result.output
        assert "httpx" not in result.output

    def test_resolve_unknown(self, ws):
        result = runner.invoke(main, ["resolve", "nope", "-C", ws])
        assert result.exit_code == 0
        assert "not found" in result.output

    def test_resolve_unknown_strict(self, ws):
        result = runner.invoke(main, ["resolve", "nope", "-C", ws, "--strict"])
        assert result.exit_code == 1

    def test_resolve_no_lock(self, tmp_path):
        result = runner.invoke(main, ["resolve", "api", "-C", str(tmp_path)])
        assert result.exit_code == 1
        assert "not found" in result.output


class TestDockerfile:
    def test_stdout(self, ws):
        result = runner.invoke(main, ["dockerfile", "api", "-C", ws])
        assert result.exit_code == 0
        assert "FROM python:3.12-slim AS runtime" in result.output

    def test_set_and_output_file(self, ws, tmp_path):
        out = tmp_path / "Dockerfile.api"
        result = runner.invoke(main, [
            "dockerfile", "api", "-C", ws,
            "-o", str(out),
            "--set", "base_image=python:3.13-slim",
        ])
        assert result.exit_code == 0
        assert "FROM python:3.13-slim AS deps" in out.read_text()

    def test_workspace_config(self, ws):
        with open(os.path.join(ws, "hull.yaml"), "w") as f:
            yaml.dump({"static_root": "/srv/static"}, f)
        result = runner.invoke(main, ["dockerfile", "api", "-C", ws])
        assert result.exit_code == 0
        assert "/srv/static/api/" in result.output


class TestBuild:
    def test_build(self, ws, monkeypatch):
        calls = _fake_engine(monkeypatch)
        result = runner.invoke(main, ["build", "api", "-C", ws, "-t", "api:dev"])
        assert result.exit_code == 0
        assert "api:dev" in result.output
        assert "api, core" in result.output
        assert len(calls) == 1

    def test_build_failure(self, ws, monkeypatch):
        _fake_engine(monkeypatch, returncode=1, stderr="uv: No solution found")
        result = runner.invoke(main, ["build", "api", "-C", ws])
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "No solution found" in result.output

    def test_build_strict_unknown(self, ws, monkeypatch):
        calls = _fake_engine(monkeypatch)
        result = runner.invoke(main, ["build", "nope", "-C", ws, "--strict"])
        assert result.exit_code == 1
        assert calls == []

    def test_build_validate_entrypoint(self, ws, monkeypatch):
        calls = _fake_engine(monkeypatch)
        result = runner.invoke(main, [
            "build", "api", "-C", ws, "--validate-entrypoint",
        ])
        assert result.exit_code == 1
        assert "Entrypoint not found" in result.output
        assert calls == []

    def test_build_ui_no_frontend(self, ws, monkeypatch, tmp_path):
        calls = _fake_engine(monkeypatch)
        out = tmp_path / "ui"
        result = runner.invoke(main, ["build-ui", "api", "-C", ws, "-o", str(out)])
        assert result.exit_code == 0
        assert "No frontend" in result.output
        assert out.is_dir()
        assert calls == []


class TestConfig:
    def test_config(self, ws):
        result = runner.invoke(main, ["config", "-C", ws, "--set", "app_dir=/srv"])
        assert result.exit_code == 0
        data = yaml.safe_load(result.output)
        assert data["app_dir"] == "/srv"
        assert data["uv_cache_id"] == "hull-uv-cache"

    def test_config_unknown_key(self, ws):
        result = runner.invoke(main, ["config", "-C", ws, "--set", "nope=1"])
        assert result.exit_code == 1


class TestAssets:
    def test_push_pull_ui(self, tmp_path):
        dist = tmp_path / "dist"
        dist.mkdir()
        (dist / "index.html").write_text("<html></html>")
        registry = f"oci://{tmp_path / 'registry'}"

        result = runner.invoke(main, [
            "push-ui", "api", str(dist), "--tag", "1.0", "--registry", registry,
        ])
        assert result.exit_code == 0
        assert f"Pushed {registry}/api:1.0" in result.output

        out = tmp_path / "public"
        result = runner.invoke(main, [
            "pull-ui", "api:1.0", "-o", str(out), "--registry", registry,
        ])
        assert result.exit_code == 0
        assert (out / "index.html").exists()

    def test_registry_from_workspace_settings(self, ws, tmp_path):
        dist = tmp_path / "dist"
        dist.mkdir()
        (dist / "index.html").write_text("<html></html>")
        with open(os.path.join(ws, "hull.yaml"), "w") as f:
            yaml.dump({"assets_registry": f"file://{tmp_path / 'registry'}"}, f)

        result = runner.invoke(main, ["push-ui", "api", str(dist), "-C", ws])
        assert result.exit_code == 0
        assert (tmp_path / "registry" / "api" / "latest" / "index.json").exists()

    def test_push_without_registry(self, tmp_path):
        result = runner.invoke(main, ["push-ui", "api", str(tmp_path), "-C", str(tmp_path)])
        assert result.exit_code == 1
        assert "assets_registry is not set" in result.output

    def test_pull_missing(self, tmp_path):
        result = runner.invoke(main, [
            "pull-ui", "api:1.0", "-o", str(tmp_path / "out"),
            "--registry", f"oci://{tmp_path / 'registry'}",
        ])
        assert result.exit_code == 1
        assert "Assets not found" in result.output

    def test_pull_bad_reference(self, tmp_path):
        result = runner.invoke(main, [
            "pull-ui", "api", "-o", str(tmp_path / "out"), "--registry", "oci://local",
        ])
        assert result.exit_code == 2
        assert "PACKAGE:VERSION" in result.output

    def test_no_temp_dirs_left_behind(self, tmp_path, monkeypatch):
        scratch = tmp_path / "scratch"
        scratch.mkdir()
        monkeypatch.setattr(tempfile, "tempdir", str(scratch))
        dist = tmp_path / "dist"
        dist.mkdir()
        (dist / "index.html").write_text("<html></html>")
        registry = f"oci://{tmp_path / 'registry'}"

        runner.invoke(main, ["push-ui", "api", str(dist), "-t", "1.0", "-r", registry])
        runner.invoke(main, [
            "pull-ui", "api:1.0", "-o", str(tmp_path / "out"), "-r", registry,
        ])
        assert (tmp_path / "out" / "index.html").exists()
        assert list(scratch.iterdir()) == []
