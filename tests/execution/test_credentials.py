"""Tests for the registry credential table and Docker config loading."""

import base64
import json

import pytest
from docker import auth as docker_auth

from dockrun.core.errors import JobConfigError
from dockrun.execution.credentials import (
    CredentialTable,
    RegistryCredential,
    normalize_registry_host,
)


def _b64(text: str) -> str:
    return base64.b64encode(text.encode()).decode()


class TestNormalizeRegistryHost:
    @pytest.mark.parametrize(
        "key, host",
        [
            ("quay.io", "quay.io"),
            ("https://quay.io/v1/", "quay.io"),
            ("http://Registry.Local:5000", "registry.local:5000"),
            ("https://index.docker.io/v1/", "index.docker.io"),
        ],
    )
    def test_normalize(self, key, host):
        assert normalize_registry_host(key) == host


class TestCredentialTable:
    def test_lookup_exact_host(self):
        cred = RegistryCredential(username="u", password="p")
        table = CredentialTable({"quay.io": cred})
        assert table.lookup("quay.io") is cred
        assert table.lookup("quay.io:5000") is None

    def test_lookup_empty_registry(self):
        table = CredentialTable({"quay.io": RegistryCredential()})
        assert table.lookup("") is None

    def test_mapping_protocol(self):
        table = CredentialTable({"https://quay.io/v1/": RegistryCredential(username="u")})
        assert list(table) == ["quay.io"]
        assert len(table) == 1
        assert table["https://quay.io"].username == "u"

    def test_immutable(self):
        table = CredentialTable({"quay.io": RegistryCredential()})
        with pytest.raises(TypeError):
            table._entries["other"] = RegistryCredential()

    def test_empty(self):
        assert len(CredentialTable.empty()) == 0


class TestRegistryCredential:
    def test_auth_config_omits_unset(self):
        cred = RegistryCredential(username="u", password="p", server_address="quay.io")
        assert cred.to_auth_config() == {
            "username": "u",
            "password": "p",
            "serveraddress": "quay.io",
        }

    def test_identity_token(self):
        cred = RegistryCredential(identity_token="tok")
        assert cred.to_auth_config() == {"identitytoken": "tok"}

    def test_repr_hides_password(self):
        assert "s3cret" not in repr(RegistryCredential(username="u", password="s3cret"))


class TestFromDockerConfig:
    def test_auths_with_base64_auth(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "auths": {"https://quay.io/v1/": {"auth": _b64("user:pa:ss"), "email": "ops@example.com"}},
        }))
        table = CredentialTable.from_docker_config(path)
        cred = table.lookup("quay.io")
        assert cred.username == "user"
        assert cred.password == "pa:ss"
        assert cred.email == "ops@example.com"
        assert cred.server_address == "https://quay.io/v1/"

    def test_identity_token_entry(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"auths": {"acr.io": {"identitytoken": "tok"}}}))
        cred = CredentialTable.from_docker_config(path).lookup("acr.io")
        assert cred.identity_token == "tok"
        assert cred.to_auth_config() == {"identitytoken": "tok", "serveraddress": "acr.io"}

    def test_entry_without_auth_skipped(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"auths": {"ghcr.io": {}, "quay.io": {"auth": _b64("u:p")}}}))
        table = CredentialTable.from_docker_config(path)
        assert list(table) == ["quay.io"]

    def test_legacy_dockercfg(self, tmp_path):
        path = tmp_path / ".dockercfg"
        path.write_text(json.dumps({"https://quay.io": {"auth": _b64("u:p")}}))
        assert CredentialTable.from_docker_config(path).lookup("quay.io").username == "u"

    def test_missing_file_is_empty(self, tmp_path):
        assert len(CredentialTable.from_docker_config(tmp_path / "nope.json")) == 0

    def test_config_without_auths(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"auths": {}, "credsStore": "desktop"}))
        assert len(CredentialTable.from_docker_config(path)) == 0

    def test_docker_config_env(self, tmp_path, monkeypatch):
        (tmp_path / "config.json").write_text(json.dumps({"auths": {"ghcr.io": {"auth": _b64("a:b")}}}))
        monkeypatch.setenv("DOCKER_CONFIG", str(tmp_path))
        assert CredentialTable.from_docker_config().lookup("ghcr.io").password == "b"

    def test_unparseable_file_is_empty(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json")
        assert len(CredentialTable.from_docker_config(path)) == 0

    def test_bad_auth_field(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"auths": {"quay.io": {"auth": _b64("no-colon")}}}))
        with pytest.raises(JobConfigError) as exc_info:
            CredentialTable.from_docker_config(path)
        assert exc_info.value.context.path == str(path)

    def test_delegates_to_docker_auth(self, tmp_path, monkeypatch):
        path = tmp_path / "config.json"
        path.write_text("{}")
        seen = []

        def fake_load_config(config_path):
            seen.append(config_path)
            return docker_auth.AuthConfig({"auths": {"quay.io": {"username": "u", "password": "p"}}})

        monkeypatch.setattr(docker_auth, "load_config", fake_load_config)
        assert CredentialTable.from_docker_config(path).lookup("quay.io").password == "p"
        assert seen == [str(path)]
