"""Console and machine-readable rendering of release outcomes."""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path

from rflow.output.console import ConsoleProtocol, Style
from rflow.release.contracts import MergeResult, TrainResult
from rflow.release.domain.model import GuardrailReport, GuardrailResult, ReleaseContext


def _marker(result: GuardrailResult) -> tuple[str, Style]:
    if result.skipped:
        return "skip", Style.DIM
    if result.passed:
        return "pass", Style.SUCCESS
    return "FAIL", Style.ERROR


def render_context(context: ReleaseContext, console: ConsoleProtocol) -> None:
    console.header(f"{context.source_branch} -> {context.target_branch}")
    console.print(f"repository: {context.repository}", Style.DIM)
    console.print(f"phase: {context.phase}")
    console.print(f"version: {context.version}")
    if context.intent is not None:
        console.print(f"draft intent: #{context.intent.id} {context.intent.url}", Style.DIM)
    else:
        console.print("draft intent: none", Style.DIM)


def render_guardrails(report: GuardrailReport, console: ConsoleProtocol) -> None:
    """List every evaluated guardrail; the failing one gets its full message."""
    console.header("Guardrails")
    for result in report.details:
        marker, style = _marker(result)
        if result.passed:
            console.print(f"[{marker}] {result.id} {result.name}: {result.message}", style)
            continue
        console.print(f"[{marker}] {result.id} {result.name}", style)
        for line in result.message.splitlines():
            console.print(f"    {line}", style)

    if report.failed is not None:
        console.error(f"guardrail {report.failed.id} ({report.failed.name}) refused the release")
    else:
        validated = ", ".join(report.validated) or "none"
        console.success(f"guardrails passed (validated: {validated})")


def render_merge_result(result: MergeResult, console: ConsoleProtocol) -> None:
    console.header(f"Release {result.version} ({result.phase})")
    if result.release_url:
        console.print(f"release: {result.release_url}")
    if result.tags_created:
        console.print(f"tags: {', '.join(result.tags_created)}")
    for url in result.backflow_prs:
        console.print(f"backflow: {url}")


def render_train_result(result: TrainResult, console: ConsoleProtocol) -> None:
    console.header("Train")
    console.print(f"branch: {result.dev_branch}")
    console.print(f"intent: {result.intent_url}")
    console.print(f"base: {result.base_commit}", Style.DIM)


def to_json(payload: Mapping[str, object]) -> str:
    return json.dumps(payload, indent=2)


def _output_value(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, list | tuple):
        return json.dumps(list(value))  # pyright: ignore[reportUnknownArgumentType]
    return str(value)


def output_lines(payload: Mapping[str, object]) -> list[str]:
    """``key=value`` lines in the GitHub Actions step-output format."""
    return [f"{key}={_output_value(value)}" for key, value in payload.items()]


def write_outputs(path: Path, payload: Mapping[str, object]) -> None:
    """Append step outputs to ``path`` (the file named by ``GITHUB_OUTPUT``)."""
    with path.open("a", encoding="utf-8") as f:
        for line in output_lines(payload):
            f.write(line + "\n")
