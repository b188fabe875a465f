from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path

from rflow.core.config import VersionFile, VersionFileKind
from rflow.core.result import Err, Ok, Result
from rflow.core.structured import as_str_dict, get_str
from rflow.platform.files import atomic_write_text
from rflow.release.domain.versions import bare_version, stamp_version
from rflow.release.errors import ReleaseError

_TOML_SECTION_RE = re.compile(r"(?m)^\[(package|project)\]\s*(?:#.*)?$")
_TOML_TABLE_RE = re.compile(r"(?m)^\s*\[")
_TOML_VERSION_RE = re.compile(r'(?m)^version[ \t]*=[ \t]*"([^"]+)"\s*(?:#.*)?$')
_XML_VERSION_RE = re.compile(r"<Version>([^<]*)</Version>")


@dataclass(frozen=True, slots=True)
class StampReport:
    file_path: str
    file_type: VersionFileKind
    version: str
    pre_release: str | None
    updated: bool


def _read(path: Path) -> Result[str, ReleaseError]:
    try:
        return Ok(path.read_text(encoding="utf-8"))
    except OSError as e:
        return _invalid(path, f"failed to read {path.name}: {e}")


def _write(path: Path, text: str) -> Result[None, ReleaseError]:
    try:
        atomic_write_text(path, text, encoding="utf-8")
    except OSError as e:
        return _invalid(path, f"failed to write {path.name}: {e}")
    return Ok(None)


def _invalid(path: Path, message: str) -> Err[ReleaseError]:
    return Err(ReleaseError(kind="stamp_failed", message=message, hint=str(path)))


def _stamp_json(path: Path, text: str, version: str) -> Result[str, ReleaseError]:
    try:
        obj: object = json.loads(text)
    except json.JSONDecodeError as e:
        return _invalid(path, f"invalid JSON in {path.name}: {e}")

    data = as_str_dict(obj)
    if data is None:
        return _invalid(path, f"invalid JSON root in {path.name}")
    prev = get_str(data, "version")
    if prev is None:
        return _invalid(path, f"missing version in {path.name}")
    if prev == version:
        return Ok(text)

    data["version"] = version
    return Ok(json.dumps(data, indent=2, ensure_ascii=False) + "\n")


def _stamp_toml(path: Path, text: str, version: str) -> Result[str, ReleaseError]:
    for header in _TOML_SECTION_RE.finditer(text):
        start = header.end()
        # Only the section body: stop at the next table header.
        nxt = _TOML_TABLE_RE.search(text, start)
        end = nxt.start() if nxt is not None else len(text)
        m = _TOML_VERSION_RE.search(text, start, end)
        if m is None:
            continue
        return Ok(text[: m.start(1)] + version + text[m.end(1) :])

    return _invalid(path, f"missing [package]/[project] version in {path.name}")


def _stamp_xml(path: Path, text: str, version: str) -> Result[str, ReleaseError]:
    if _XML_VERSION_RE.search(text) is None:
        return _invalid(path, f"missing <Version> element in {path.name}")
    return Ok(_XML_VERSION_RE.sub(f"<Version>{version}</Version>", text, count=1))


def _stamp_text(path: Path, text: str, version: str, pattern: str) -> Result[str, ReleaseError]:
    try:
        regex = re.compile(pattern, re.MULTILINE)
    except re.error as e:
        return _invalid(path, f"invalid version pattern for {path.name}: {e}")
    if regex.groups != 1:
        return _invalid(path, f"version pattern for {path.name} needs exactly one group")

    m = regex.search(text)
    if m is None:
        return _invalid(path, f"version pattern did not match in {path.name}")
    return Ok(text[: m.start(1)] + version + text[m.end(1) :])


def stamp_file(
    *,
    repo_root: Path,
    file: VersionFile,
    version: str,
    pre_release: str | None,
) -> Result[StampReport, ReleaseError]:
    """Rewrite one file's version field in place.

    Args:
        version: Base version, with or without the ``v`` marker.
        pre_release: Label such as ``alpha1`` (dots are stripped), or None.
    """
    path = repo_root / file.path
    if not path.is_file():
        return Err(
            ReleaseError(
                kind="stamp_file_missing",
                message=f"version file not found: {file.path}",
                hint=f"Fix the version_files entry in the config, or add {file.path}",
            )
        )

    text = _read(path)
    if isinstance(text, Err):
        return text

    stamped = stamp_version(version, pre_release)
    match file.kind:
        case "json":
            out = _stamp_json(path, text.value, stamped)
        case "toml":
            out = _stamp_toml(path, text.value, stamped)
        case "xml":
            out = _stamp_xml(path, text.value, stamped)
        case "text":
            out = _stamp_text(path, text.value, stamped, file.pattern or "")
    if isinstance(out, Err):
        return out

    updated = out.value != text.value
    if updated:
        written = _write(path, out.value)
        if isinstance(written, Err):
            return written

    return Ok(
        StampReport(
            file_path=file.path,
            file_type=file.kind,
            version=bare_version(version),
            pre_release=pre_release.replace(".", "") if pre_release else None,
            updated=updated,
        )
    )


class FileStamper:
    """Stamps every configured version file of one checkout."""

    def __init__(self, *, repo_root: Path, files: tuple[VersionFile, ...]) -> None:
        self._repo_root = repo_root
        self._files = files

    def stamp(
        self, version: str, pre_release: str | None
    ) -> Result[list[StampReport], ReleaseError]:
        reports: list[StampReport] = []
        for file in self._files:
            report = stamp_file(
                repo_root=self._repo_root,
                file=file,
                version=version,
                pre_release=pre_release,
            )
            if isinstance(report, Err):
                return report
            reports.append(report.value)
        return Ok(reports)
