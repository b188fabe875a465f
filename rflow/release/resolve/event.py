from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path

from rflow.core.result import Err, Ok, Result
from rflow.core.structured import StrDict, as_str_dict, get_int, get_str, get_table
from rflow.release.contracts import MergeEvent
from rflow.release.errors import ReleaseError

ENV_EVENT_PATH = "GITHUB_EVENT_PATH"
ENV_REPOSITORY = "GITHUB_REPOSITORY"


def _event_missing(detail: str) -> Err[ReleaseError]:
    return Err(
        ReleaseError(
            kind="event_missing",
            message=f"event source not found: {detail}",
            hint=(
                "Run from a pull_request workflow, "
                f"or pass --event PATH (or set {ENV_EVENT_PATH})"
            ),
        )
    )


def parse_event(data: StrDict, env: Mapping[str, str]) -> Result[MergeEvent, ReleaseError]:
    """Extract the merge descriptor from a pull_request event payload."""
    pr = get_table(data, "pull_request") or {}
    head = get_table(pr, "head") or {}
    base = get_table(pr, "base") or {}

    source = get_str(head, "ref")
    target = get_str(base, "ref")
    if source is None or target is None:
        return Err(
            ReleaseError(
                kind="invalid_input",
                message="event has no pull_request.head.ref / pull_request.base.ref",
                hint="release-flow only handles pull_request events",
            )
        )

    repo_table = get_table(data, "repository") or {}
    repository = get_str(repo_table, "full_name") or get_str(env, ENV_REPOSITORY)
    number = get_int(pr, "number") or get_int(data, "number")

    return Ok(
        MergeEvent(
            source_branch=source,
            target_branch=target,
            repository=repository,
            pull_request_id=number,
        )
    )


def read_event(path: Path | None, env: Mapping[str, str]) -> Result[MergeEvent, ReleaseError]:
    """Load the event document from ``path`` or ``$GITHUB_EVENT_PATH``."""
    if path is None:
        env_path = (env.get(ENV_EVENT_PATH) or "").strip()
        if not env_path:
            return _event_missing(f"{ENV_EVENT_PATH} is not set")
        path = Path(env_path)

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        return _event_missing(f"{path}: {e}")

    try:
        obj: object = json.loads(text)
    except json.JSONDecodeError as e:
        return _event_missing(f"{path} is not valid JSON: {e}")

    data = as_str_dict(obj)
    if data is None:
        return _event_missing(f"{path} is not a JSON object")
    return parse_event(data, env)
