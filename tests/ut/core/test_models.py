"""数据模型测试"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from refpin.core.exceptions import ValidationError
from refpin.core.models import (
    RECORD_KEYS,
    BuildIdentity,
    BuildParams,
    InstalledBuildRecord,
    RepositorySpec,
    ResolvedVersion,
    is_commit_reference,
)


class TestIsCommitReference:
    @pytest.mark.parametrize("ref", [
        "a" * 40,
        "0123456789abcdef0123456789abcdef01234567",
        "f" * 40,
    ])
    def test_forty_lowercase_hex(self, ref: str) -> None:
        assert is_commit_reference(ref) is True

    @pytest.mark.parametrize("ref", [
        "a" * 39,
        "a" * 41,
        "A" * 40,
        "0123456789ABCDEF0123456789abcdef01234567",
        "g" * 40,
        "main",
        "master",
        "zsh-5.9",
        "",
        "a" * 40 + "\n",
        " " + "a" * 39,
    ])
    def test_everything_else(self, ref: str) -> None:
        assert is_commit_reference(ref) is False

    def test_repository_spec_property(self) -> None:
        assert RepositorySpec("https://x/y", "b" * 40).is_commit
        assert not RepositorySpec("https://x/y", "main").is_commit


class TestResolvedVersion:
    def test_empty_rejected(self) -> None:
        with pytest.raises(ValidationError, match="版本号不能为空"):
            ResolvedVersion("")

    def test_blank_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ResolvedVersion("   ")

    def test_str(self) -> None:
        assert str(ResolvedVersion("5.9", source="default")) == "5.9"


class TestBuildParams:
    def test_unpacks_to_triple(self) -> None:
        params = BuildParams("https://x/y", "main", ResolvedVersion("1.0", "override"))
        repo, ref, version = params
        assert (repo, ref, version) == ("https://x/y", "main", "1.0")
        assert params.spec == RepositorySpec("https://x/y", "main")


class TestBuildIdentity:
    def test_label_with_suffix(self) -> None:
        assert BuildIdentity("5.9", "aaaaaaaa").label == "5.9-aaaaaaaa"

    def test_label_without_suffix(self) -> None:
        ident = BuildIdentity("5.9")
        assert ident.commit_suffix is None
        assert str(ident) == "5.9"


class TestInstalledBuildRecord:
    def _record(self, **kw) -> InstalledBuildRecord:
        base = dict(
            repo="https://github.com/acme/tool",
            reference="main",
            version="2.3.1",
            resolved_commit="c" * 40,
            installed_at=datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
            is_commit_ref=False,
        )
        base.update(kw)
        return InstalledBuildRecord(**base)

    def test_to_fields_keys(self) -> None:
        fields = self._record().to_fields()
        assert tuple(fields) == RECORD_KEYS
        assert fields["IS_COMMIT_REF"] == "false"
        assert fields["INSTALLED_AT"] == "2026-01-02T03:04:05+00:00"

    def test_from_fields(self) -> None:
        rec = self._record(is_commit_ref=True)
        assert InstalledBuildRecord.from_fields(rec.to_fields()) == rec

    def test_from_fields_missing_key(self) -> None:
        fields = self._record().to_fields()
        del fields["COMMIT"]
        with pytest.raises(ValidationError, match="COMMIT"):
            InstalledBuildRecord.from_fields(fields)

    def test_from_fields_bad_timestamp(self) -> None:
        fields = self._record().to_fields()
        fields["INSTALLED_AT"] = "yesterday"
        with pytest.raises(ValidationError, match="ISO-8601"):
            InstalledBuildRecord.from_fields(fields)
