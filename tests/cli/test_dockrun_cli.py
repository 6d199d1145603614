"""
Tests for the dockrun CLI.

The Docker engine is replaced by the in-memory FakeEngine; the supervisor
uses a 1 ms poll interval so runs finish immediately.
"""

from __future__ import annotations

import base64
import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from dockrun.cli.app import app
from dockrun.execution.fake_engine import FakeEngine

runner = CliRunner()


@pytest.fixture(autouse=True)
def _fast_settings(monkeypatch, tmp_path):
    monkeypatch.setenv("DOCKRUN_POLL_INTERVAL_SECONDS", "0.001")
    monkeypatch.setenv("DOCKRUN_DOCKER_CONFIG", str(tmp_path / "missing-config.json"))


@pytest.fixture
def fake_engine():
    engine = FakeEngine()
    with patch("dockrun.cli.app.DockerEngine") as cls:
        cls.from_settings.return_value = engine
        yield engine


class TestVersion:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "dockrun" in result.output


class TestRun:
    def test_success(self, fake_engine):
        result = runner.invoke(app, ["run", "--image", "alpine:3.19", "--", "echo", "hi"])
        assert result.exit_code == 0, result.output
        assert "succeeded" in result.output
        [(config,)] = fake_engine.calls_to("create")
        assert config.argv == ("echo", "hi")
        assert len(fake_engine.removed) == 1

    def test_keep(self, fake_engine):
        result = runner.invoke(app, ["run", "--image", "alpine", "--keep"])
        assert result.exit_code == 0, result.output
        assert fake_engine.removed == []

    def test_env_and_volumes(self, fake_engine, tmp_path):
        env_file = tmp_path / "job.env"
        env_file.write_text("K2=v2\n")
        result = runner.invoke(app, [
            "run", "--image", "alpine",
            "--env", "K1=v1",
            "--env-files", str(env_file),
            "--volumes", "/data:/data",
            "--user", "nobody",
        ])
        assert result.exit_code == 0, result.output
        [(config,)] = fake_engine.calls_to("create")
        assert config.env == ("K1=v1", "K2=v2")
        assert config.user == "nobody"
        assert [m.to_bind() for m in config.mounts] == ["/data:/data:rw"]

    def test_exit_code_propagated(self, fake_engine):
        fake_engine.script_states(exit_code=7)
        result = runner.invoke(app, ["run", "--image", "alpine"])
        assert result.exit_code == 7
        assert fake_engine.removed == []

    @pytest.mark.parametrize("code", [-2, 256, 300])
    def test_out_of_range_exit_code_maps_to_one(self, fake_engine, code):
        fake_engine.script_states(exit_code=code)
        result = runner.invoke(app, ["run", "--image", "alpine"])
        assert result.exit_code == 1

    def test_existing_container(self, fake_engine):
        fake_engine.add_container("nightly")
        result = runner.invoke(app, ["run", "--container", "nightly"])
        assert result.exit_code == 0, result.output
        assert fake_engine.calls_to("pull") == []
        assert fake_engine.removed == []

    def test_no_target(self, fake_engine):
        result = runner.invoke(app, ["run", "--", "echo", "hi"])
        assert result.exit_code == 1
        assert "needs an image or a container" in result.output

    def test_bad_volume_spec(self, fake_engine):
        result = runner.invoke(app, ["run", "--image", "alpine", "--volumes", "/data"])
        assert result.exit_code == 1
        assert fake_engine.calls == []

    def test_pull_failure(self, fake_engine):
        fake_engine.fail("pull")
        result = runner.invoke(app, ["run", "--image", "private/app"])
        assert result.exit_code == 1


class TestImage:
    def test_json(self):
        result = runner.invoke(app, ["image", "quay.io:5000/srcd/rest:qux", "--json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {
            "registry": "quay.io:5000",
            "repository": "quay.io:5000/srcd/rest",
            "tag": "qux",
            "credentials": False,
        }

    def test_credentials_found(self, monkeypatch, tmp_path):
        config = tmp_path / "config.json"
        auth = base64.b64encode(b"u:p").decode()
        config.write_text(json.dumps({"auths": {"quay.io": {"auth": auth}}}))
        monkeypatch.setenv("DOCKRUN_DOCKER_CONFIG", str(config))
        result = runner.invoke(app, ["image", "quay.io/srcd/rest", "--json"])
        assert json.loads(result.stdout)["credentials"] is True

    def test_table(self):
        result = runner.invoke(app, ["image", "foo"])
        assert result.exit_code == 0
        assert "latest" in result.output

    def test_invalid(self):
        result = runner.invoke(app, ["image", ":tag"])
        assert result.exit_code == 1
