from __future__ import annotations

from rflow.core.result import Err, Ok
from rflow.release.domain.model import DraftIntent, Phase
from rflow.release.flow.prerelease import run_prerelease
from rflow.test.release.fakes import Fakes, context

_INTENT = DraftIntent(
    id=3,
    tag_name="v1.0.0",
    target_branch="dev/v1.0.0",
    url="https://github.com/acme/widget/releases/tag/untagged-3",
)


def test_first_beta_is_number_one() -> None:
    fakes = Fakes()
    ctx = context("fix/y", "release/v1.0.0", phase=Phase.BETA, version="v1.0.0", intent=_INTENT)

    result = run_prerelease(ctx, "beta", fakes.services())

    assert isinstance(result, Ok)
    assert result.value.phase is Phase.BETA
    assert result.value.tags_created == ("v1.0.0-beta.1",)
    assert result.value.release_url == "https://github.com/acme/widget/releases/tag/v1.0.0-beta.1"
    assert fakes.tagging.requested == ["v1.0.0-beta.1"]


def test_next_number_is_max_plus_one() -> None:
    fakes = Fakes()
    fakes.tagging.tags = ["v1.2.0-alpha.1", "v1.2.0-alpha3", "v1.2.0-beta.7"]
    ctx = context("feature/x", "dev/v1.2.0", phase=Phase.ALPHA, version="v1.2.0")

    first = run_prerelease(ctx, "alpha", fakes.services())
    second = run_prerelease(ctx, "alpha", fakes.services())

    assert isinstance(first, Ok)
    assert isinstance(second, Ok)
    assert fakes.tagging.requested == ["v1.2.0-alpha.4", "v1.2.0-alpha.5"]


def test_stamps_undotted_label_and_pushes_to_target() -> None:
    fakes = Fakes()
    ctx = context("feature/x", "dev/v1.2.0", phase=Phase.ALPHA, version="v1.2.0")

    run_prerelease(ctx, "alpha", fakes.services())

    assert fakes.stamper.stamped == [("v1.2.0", "alpha1")]
    commits = [c for c in fakes.vcs.calls if c.startswith("commit:")]
    assert commits == ["commit:chore(release): 1.2.0-alpha1 [skip ci]"]
    assert "push_head:dev/v1.2.0" in fakes.vcs.calls


def test_release_record_is_a_prerelease_on_target_branch() -> None:
    fakes = Fakes()
    ctx = context("feature/x", "dev/v1.2.0", phase=Phase.ALPHA, version="v1.2.0")

    run_prerelease(ctx, "alpha", fakes.services())

    [created] = fakes.hosting.created_releases
    assert created["tag"] == "v1.2.0-alpha.1"
    assert created["target"] == "dev/v1.2.0"
    assert created["prerelease"] is True
    assert created["draft"] is False


def test_no_commit_when_files_unchanged() -> None:
    fakes = Fakes()
    fakes.stamper.changed = False
    ctx = context("feature/x", "dev/v1.2.0", phase=Phase.ALPHA, version="v1.2.0")

    result = run_prerelease(ctx, "alpha", fakes.services())

    assert isinstance(result, Ok)
    assert not any(c.startswith("commit:") for c in fakes.vcs.calls)
    assert not any(c.startswith("push_head:") for c in fakes.vcs.calls)


def test_existing_record_is_reused_on_retry() -> None:
    fakes = Fakes()
    fakes.hosting.fail_create_release = True
    fakes.hosting.existing_release_urls["v1.2.0-alpha.1"] = "https://example.test/alpha1"
    ctx = context("feature/x", "dev/v1.2.0", phase=Phase.ALPHA, version="v1.2.0")

    result = run_prerelease(ctx, "alpha", fakes.services())

    assert isinstance(result, Ok)
    assert result.value.release_url == "https://example.test/alpha1"
    assert fakes.console.has_warning()


def test_create_failure_without_existing_record_is_an_error() -> None:
    fakes = Fakes()
    fakes.hosting.fail_create_release = True
    ctx = context("feature/x", "dev/v1.2.0", phase=Phase.ALPHA, version="v1.2.0")

    result = run_prerelease(ctx, "alpha", fakes.services())

    assert isinstance(result, Err)
    assert result.error.kind == "gh_failed"
