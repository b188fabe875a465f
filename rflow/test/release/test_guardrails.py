from __future__ import annotations

from rflow.core.config import CiConfig, FreezeConfig
from rflow.release.domain.guardrails import evaluate_guardrails, is_self_check
from rflow.release.domain.model import BranchProbe, CheckRun, DraftIntent, Phase, ReleaseContext
from rflow.test.release.fakes import FakeHosting, context

_INTENT = DraftIntent(
    id=7,
    tag_name="v1.0.0",
    target_branch="dev/v1.0.0",
    url="https://github.com/acme/widget/releases/tag/untagged-7",
)


def _alpha(source: str) -> ReleaseContext:
    intent = DraftIntent(
        id=8,
        tag_name="v1.2.0",
        target_branch="dev/v1.2.0",
        url="https://github.com/acme/widget/releases/tag/untagged-8",
    )
    return context(source, "dev/v1.2.0", phase=Phase.ALPHA, version="v1.2.0", intent=intent)


def test_missing_intent_fails_g1_with_remediation() -> None:
    ctx = context("feature/x", "dev/v1.2.0", phase=Phase.ALPHA, version="v1.2.0")

    report = evaluate_guardrails(ctx, freeze=FreezeConfig(), ci=CiConfig(), probes=FakeHosting())

    assert not report.passed
    assert report.failed is not None
    assert report.failed.id == "G1"
    assert "No draft intent" in report.failed.message
    assert "v1.2.0" in report.failed.message
    assert "rflow train start v1.2.0" in report.failed.message
    assert report.validated == ()


def test_g1_reported_before_g5_and_nothing_validated() -> None:
    ctx = context("feature/x", "dev/v1.2.0", phase=Phase.ALPHA, version="v1.2.0")

    report = evaluate_guardrails(
        ctx,
        freeze=FreezeConfig(active=True),
        ci=CiConfig(),
        probes=FakeHosting(),
    )

    assert report.failed is not None
    assert report.failed.id == "G1"
    assert report.validated == ()
    assert [d.id for d in report.details] == ["G1"]


def test_fix_into_release_passes_g1_g3_g5_and_skips_g2_g4() -> None:
    ctx = context(
        "fix/y", "release/v1.0.0", phase=Phase.BETA, version="v1.0.0", intent=_INTENT
    )
    hosting = FakeHosting()

    report = evaluate_guardrails(ctx, freeze=FreezeConfig(), ci=CiConfig(), probes=hosting)

    assert report.passed
    assert report.failed is None
    assert report.validated == ("G1", "G3", "G5")
    skipped = [d.id for d in report.details if d.skipped]
    assert skipped == ["G2", "G4"]
    assert hosting.calls == []


def test_feature_into_release_fails_g3() -> None:
    ctx = context(
        "feature/z", "release/v1.0.0", phase=Phase.BETA, version="v1.0.0", intent=_INTENT
    )

    report = evaluate_guardrails(ctx, freeze=FreezeConfig(), ci=CiConfig(), probes=FakeHosting())

    assert report.failed is not None
    assert report.failed.id == "G3"
    assert "fix/" in report.failed.message
    assert report.validated == ("G1",)


def test_freeze_phase_skips_g1_to_g4() -> None:
    ctx = context("dev/v1.0.0", "release/v1.0.0", phase=Phase.FREEZE, version="v1.0.0")

    report = evaluate_guardrails(ctx, freeze=FreezeConfig(), ci=CiConfig(), probes=FakeHosting())

    assert report.passed
    assert report.validated == ("G5",)


class TestFeatureFreezePerVersion:
    def test_feature_blocked_when_release_branch_exists(self) -> None:
        hosting = FakeHosting(branches={"release/v1.2.0": BranchProbe.EXISTS})
        ctx = _alpha("feature/x")

        report = evaluate_guardrails(ctx, freeze=FreezeConfig(), ci=CiConfig(), probes=hosting)

        assert report.failed is not None
        assert report.failed.id == "G2"
        assert "release/v1.2.0" in report.failed.message

    def test_feature_allowed_before_freeze(self) -> None:
        ctx = _alpha("feature/x")

        report = evaluate_guardrails(
            ctx, freeze=FreezeConfig(), ci=CiConfig(), probes=FakeHosting()
        )

        assert report.passed
        assert report.validated == ("G1", "G2", "G5")

    def test_query_failure_is_annotated_pass(self) -> None:
        hosting = FakeHosting(branches={"release/v1.2.0": BranchProbe.QUERY_FAILED})
        ctx = _alpha("feature/x")

        report = evaluate_guardrails(ctx, freeze=FreezeConfig(), ci=CiConfig(), probes=hosting)

        assert report.passed
        g2 = report.details[1]
        assert g2.id == "G2"
        assert "bypassed" in g2.message

    def test_non_feature_branch_is_not_probed(self) -> None:
        hosting = FakeHosting(branches={"release/v1.2.0": BranchProbe.EXISTS})
        ctx = _alpha("fix/typo")

        report = evaluate_guardrails(ctx, freeze=FreezeConfig(), ci=CiConfig(), probes=hosting)

        assert report.passed
        assert hosting.calls == []


class TestCiStatus:
    def _stable(self, pull_request_id: int | None = 42) -> ReleaseContext:
        return context(
            "release/v1.0.0",
            "main",
            phase=Phase.STABLE,
            version="v1.0.0",
            intent=_INTENT,
            pull_request_id=pull_request_id,
        )

    def test_green_checks_pass(self) -> None:
        hosting = FakeHosting(
            checks=[CheckRun("build", "SUCCESS"), CheckRun("lint", "skipped")]
        )

        report = evaluate_guardrails(
            self._stable(), freeze=FreezeConfig(), ci=CiConfig(), probes=hosting
        )

        assert report.passed
        assert report.validated == ("G1", "G4", "G5")

    def test_pending_check_fails(self) -> None:
        hosting = FakeHosting(checks=[CheckRun("build", None)])

        report = evaluate_guardrails(
            self._stable(), freeze=FreezeConfig(), ci=CiConfig(), probes=hosting
        )

        assert report.failed is not None
        assert report.failed.id == "G4"
        assert "still running" in report.failed.message

    def test_failed_check_fails(self) -> None:
        hosting = FakeHosting(checks=[CheckRun("build", "FAILURE")])

        report = evaluate_guardrails(
            self._stable(), freeze=FreezeConfig(), ci=CiConfig(), probes=hosting
        )

        assert report.failed is not None
        assert "build (FAILURE)" in report.failed.message

    def test_self_checks_are_excluded(self) -> None:
        hosting = FakeHosting(
            checks=[
                CheckRun("build", "SUCCESS"),
                CheckRun("Release Flow / merge", None),
                CheckRun("publish", None),
            ]
        )
        ci = CiConfig(self_check_names=("publish",))

        report = evaluate_guardrails(
            self._stable(), freeze=FreezeConfig(), ci=ci, probes=hosting
        )

        assert report.passed

    def test_query_failure_is_degraded_pass(self) -> None:
        hosting = FakeHosting(checks=None)

        report = evaluate_guardrails(
            self._stable(), freeze=FreezeConfig(), ci=CiConfig(), probes=hosting
        )

        assert report.passed
        g4 = [d for d in report.details if d.id == "G4"][0]
        assert "bypassed" in g4.message

    def test_missing_pull_request_number_is_degraded_pass(self) -> None:
        hosting = FakeHosting(checks=[CheckRun("build", "FAILURE")])

        report = evaluate_guardrails(
            self._stable(pull_request_id=None),
            freeze=FreezeConfig(),
            ci=CiConfig(),
            probes=hosting,
        )

        assert report.passed
        assert hosting.calls == []


class TestGlobalFreeze:
    def test_feature_blocked(self) -> None:
        report = evaluate_guardrails(
            _alpha("feature/x"),
            freeze=FreezeConfig(active=True),
            ci=CiConfig(),
            probes=FakeHosting(),
        )

        assert report.failed is not None
        assert report.failed.id == "G5"
        assert "RELEASE_FREEZE_OVERRIDE" in report.failed.message
        assert report.validated == ("G1", "G2")

    def test_override_bypasses(self) -> None:
        report = evaluate_guardrails(
            _alpha("feature/x"),
            freeze=FreezeConfig(active=True, override_active=True),
            ci=CiConfig(),
            probes=FakeHosting(),
        )

        assert report.passed
        assert "bypassed" in report.details[-1].message

    def test_fix_branch_passes_during_freeze(self) -> None:
        report = evaluate_guardrails(
            _alpha("fix/typo"),
            freeze=FreezeConfig(active=True),
            ci=CiConfig(),
            probes=FakeHosting(),
        )

        assert report.passed


class TestIsSelfCheck:
    def test_pattern_folds_case_spaces_hyphens_and_underscores(self) -> None:
        ci = CiConfig()
        assert is_self_check("release-flow", ci)
        assert is_self_check("Release Flow / merge", ci)
        assert is_self_check("RELEASE_FLOW", ci)
        assert not is_self_check("build", ci)

    def test_explicit_names_match_exactly(self) -> None:
        ci = CiConfig(self_check_names=("release",), self_check_patterns=())
        assert is_self_check("release", ci)
        assert not is_self_check("release-notes", ci)


def test_stable_without_intent_fails_g1() -> None:
    hosting = FakeHosting(checks=[CheckRun("build", "SUCCESS")])
    ctx = context("release/v1.0.0", "main", phase=Phase.STABLE, version="v1.0.0")

    report = evaluate_guardrails(ctx, freeze=FreezeConfig(), ci=CiConfig(), probes=hosting)

    assert not report.passed
    assert report.failed is not None
    assert report.failed.id == "G1"
    assert "No draft intent" in report.failed.message
    assert "v1.0.0" in report.failed.message
    assert report.validated == ()
    assert hosting.calls == []
