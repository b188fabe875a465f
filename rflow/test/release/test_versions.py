from __future__ import annotations

from rflow.release.domain.versions import (
    Prerelease,
    SemVer,
    bare_version,
    extract_version,
    next_prerelease_number,
    normalize_version,
    parse_prerelease_number,
    parse_stable_tag,
    parse_version,
    prerelease_tag,
    prerelease_tag_glob,
    stamp_version,
)


def test_normalize_version_adds_marker_once() -> None:
    assert normalize_version("1.2.0") == "v1.2.0"
    assert normalize_version("v1.2.0") == "v1.2.0"
    assert normalize_version(" 1.2.0 ") == "v1.2.0"


def test_bare_version_strips_marker() -> None:
    assert bare_version("v1.2.0") == "1.2.0"
    assert bare_version("1.2.0") == "1.2.0"


def test_extract_version_scans_anywhere_in_branch_name() -> None:
    assert extract_version("release/v1.0.0") == "v1.0.0"
    assert extract_version("hotfix/1.0.3-crash") == "v1.0.3"
    assert extract_version("feature/login") is None


def test_parse_version_accepts_bare_and_marked_forms() -> None:
    assert parse_version("2.0.0") == SemVer(2, 0, 0)
    assert parse_version("v2.10.3") == SemVer(2, 10, 3)
    assert parse_version("2.0") is None
    assert parse_version("v2.0.0-beta.1") is None


def test_parse_stable_tag_rejects_prereleases_and_leading_zeros() -> None:
    assert parse_stable_tag("v1.4.2") == SemVer(1, 4, 2)
    assert parse_stable_tag("v1.4.2-alpha.1") is None
    assert parse_stable_tag("v01.4.2") is None
    assert parse_stable_tag("1.4.2") is None


def test_smart_tags_are_major_and_major_minor() -> None:
    assert SemVer(3, 1, 4).smart_tags() == ("v3", "v3.1")


def test_prerelease_tag_is_dotted_and_stamp_label_is_not() -> None:
    pre = Prerelease(kind="alpha", number=3)
    assert prerelease_tag("1.2.0", pre) == "v1.2.0-alpha.3"
    assert pre.stamp_label == "alpha3"


def test_prerelease_tag_glob_covers_both_forms() -> None:
    assert prerelease_tag_glob("v1.2.0", "beta") == "v1.2.0-beta*"


class TestParsePrereleaseNumber:
    def test_dotted(self) -> None:
        assert parse_prerelease_number("v1.2.0-alpha.4", version="v1.2.0", kind="alpha") == 4

    def test_undotted(self) -> None:
        assert parse_prerelease_number("v1.2.0-alpha12", version="v1.2.0", kind="alpha") == 12

    def test_other_kind_or_version_is_ignored(self) -> None:
        assert parse_prerelease_number("v1.2.0-beta.1", version="v1.2.0", kind="alpha") is None
        assert parse_prerelease_number("v1.3.0-alpha.1", version="v1.2.0", kind="alpha") is None

    def test_non_numeric_suffix_is_ignored(self) -> None:
        assert parse_prerelease_number("v1.2.0-alpha.x", version="v1.2.0", kind="alpha") is None


class TestNextPrereleaseNumber:
    def test_starts_at_one(self) -> None:
        assert next_prerelease_number([], version="v1.0.0", kind="beta") == 1

    def test_is_max_plus_one_across_forms(self) -> None:
        tags = ["v1.0.0-beta.1", "v1.0.0-beta3", "v1.0.0-beta.2", "v1.0.0-alpha.9"]
        assert next_prerelease_number(tags, version="v1.0.0", kind="beta") == 4

    def test_gaps_do_not_get_reused(self) -> None:
        tags = ["v1.0.0-alpha.1", "v1.0.0-alpha.5"]
        assert next_prerelease_number(tags, version="v1.0.0", kind="alpha") == 6


def test_stamp_version_strips_dots_from_label() -> None:
    assert stamp_version("v1.2.0", None) == "1.2.0"
    assert stamp_version("v1.2.0", "alpha1") == "1.2.0-alpha1"
    assert stamp_version("1.2.0", "beta.2") == "1.2.0-beta2"
