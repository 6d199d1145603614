"""Tests for the volume / env / env-file / command parsers."""

import pytest

from dockrun.core.errors import ErrorCategory, SpecParseError
from dockrun.execution.models import JobSpec, VolumeMount
from dockrun.execution.spec_parser import (
    parse_command,
    parse_env_entries,
    parse_env_from_files,
    parse_env_spec,
    parse_volumes,
    resolve_env,
)


class TestParseVolumes:
    def test_two_mounts_in_order(self):
        assert parse_volumes("/data:/data,/a:/b") == [
            VolumeMount("/data", "/data"),
            VolumeMount("/a", "/b"),
        ]

    def test_mounts_are_read_write(self):
        mounts = parse_volumes("/data:/data,/another/path:/config")
        assert [m.to_bind() for m in mounts] == ["/data:/data:rw", "/another/path:/config:rw"]

    @pytest.mark.parametrize("spec", [None, "", "   "])
    def test_absent_spec(self, spec):
        assert parse_volumes(spec) == []

    @pytest.mark.parametrize("bad", ["/data", "/a:/b:/c", ":/b", "/a:", "/a:/b,"])
    def test_malformed_entry_fails_whole_parse(self, bad):
        with pytest.raises(SpecParseError) as exc_info:
            parse_volumes(bad)
        assert exc_info.value.category is ErrorCategory.VALIDATION

    def test_error_names_entry(self):
        with pytest.raises(SpecParseError) as exc_info:
            parse_volumes("/ok:/ok,/broken")
        assert "/broken" in str(exc_info.value)
        assert exc_info.value.context.metadata["entry"] == "/broken"


class TestParseEnvEntries:
    def test_preserved_in_order(self):
        assert parse_env_entries(["K1=v1", "K2=v2"]) == ["K1=v1", "K2=v2"]

    def test_value_may_contain_equals(self):
        assert parse_env_entries(["URL=a=b=c"]) == ["URL=a=b=c"]

    def test_empty_value_allowed(self):
        assert parse_env_entries(["EMPTY="]) == ["EMPTY="]

    def test_duplicates_kept(self):
        assert parse_env_entries(["K=1", "K=2"]) == ["K=1", "K=2"]

    @pytest.mark.parametrize("bad", ["novalue", "=value"])
    def test_invalid_entry(self, bad):
        with pytest.raises(SpecParseError):
            parse_env_entries([bad])

    def test_inline_spec(self):
        assert parse_env_spec("KEY1=val1,KEY2=val2") == ["KEY1=val1", "KEY2=val2"]
        assert parse_env_spec(None) == []


class TestParseEnvFromFiles:
    def test_file_then_line_order(self, tmp_path):
        first = tmp_path / "a.env"
        first.write_text("A1=1\nA2=2\n")
        second = tmp_path / "b.env"
        second.write_text("B1=1\n")
        assert parse_env_from_files(f"{first},{second}") == ["A1=1", "A2=2", "B1=1"]

    def test_skips_blank_and_comment_lines(self, tmp_path):
        path = tmp_path / "job.env"
        path.write_text("# comment\n\nK=v\n   \n")
        assert parse_env_from_files(str(path)) == ["K=v"]

    def test_value_whitespace_preserved(self, tmp_path):
        path = tmp_path / "job.env"
        path.write_bytes(b"PAD=v \r\nLEAD= x\n")
        assert parse_env_from_files(str(path)) == ["PAD=v ", "LEAD= x"]

    def test_missing_file(self, tmp_path):
        missing = tmp_path / "missing.env"
        with pytest.raises(SpecParseError) as exc_info:
            parse_env_from_files(str(missing))
        assert exc_info.value.context.path == str(missing)
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_bad_line_in_file(self, tmp_path):
        path = tmp_path / "job.env"
        path.write_text("K=v\nbroken\n")
        with pytest.raises(SpecParseError) as exc_info:
            parse_env_from_files(str(path))
        assert exc_info.value.context.path == str(path)

    def test_absent(self):
        assert parse_env_from_files(None) == []


class TestResolveEnv:
    def test_inline_then_files(self, tmp_path):
        path = tmp_path / "job.env"
        path.write_text("K2=v2\n")
        spec = JobSpec(image="alpine", env="K1=v1", **{"env-files": str(path)})
        assert resolve_env(spec) == ["K1=v1", "K2=v2"]

    def test_no_dedup(self, tmp_path):
        path = tmp_path / "job.env"
        path.write_text("K=file\n")
        spec = JobSpec(image="alpine", env="K=inline", **{"env-files": str(path)})
        assert resolve_env(spec) == ["K=inline", "K=file"]


class TestParseCommand:
    def test_shell_tokenized(self):
        assert parse_command('echo -a "foo bar"') == ["echo", "-a", "foo bar"]

    def test_empty(self):
        assert parse_command("") == []
        assert parse_command(None) == []

    def test_unbalanced_quotes(self):
        with pytest.raises(SpecParseError):
            parse_command('echo "unterminated')
