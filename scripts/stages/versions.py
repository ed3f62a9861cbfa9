"""Keep one release per distinct Brackets engine constraint."""

from typing import Any, Optional

import semantic_version

from models import ExtensionRecord
from stages.base import progress

ENGINE = "brackets"


def _parse_version(version: str) -> Optional[semantic_version.Version]:
    """Safely parse a semantic version string."""
    try:
        return semantic_version.Version(version)
    except ValueError:
        return None


def sort_versions(versions: dict[str, Any]) -> list[str]:
    """Return the valid semver keys of ``versions``, newest first."""
    parsed = []
    for key in versions:
        version = _parse_version(key)
        if version is not None:
            parsed.append((version, key))
    parsed.sort(reverse=True)
    return [key for _, key in parsed]


def engine_constraint(version_info: Any) -> Optional[str]:
    """Read ``engines.brackets`` from a version document."""
    if not isinstance(version_info, dict):
        return None
    engines = version_info.get("engines")
    if not isinstance(engines, dict):
        return None
    constraint = engines.get(ENGINE)
    if not isinstance(constraint, str) or not constraint:
        return None
    return constraint


def select_versions(versions: dict[str, Any], ordered: list[str]) -> list[str]:
    """Walk ``ordered`` newest first and keep the first version per constraint.

    ``ordered`` must be sorted descending; the newest release of each engine
    constraint is the one that survives.
    """
    parsed = [semantic_version.Version(key) for key in ordered]
    assert parsed == sorted(parsed, reverse=True), "versions must be sorted newest first"

    seen: set[str] = set()
    kept = []
    for key in ordered:
        constraint = engine_constraint(versions[key])
        if constraint is None or constraint in seen:
            continue
        seen.add(constraint)
        kept.append(key)
    return kept


def filter_versions(document: dict[str, Any]) -> Optional[ExtensionRecord]:
    """Trim a registry document down to its distinct engine releases.

    Versions without an engine constraint, duplicates of a newer release's
    constraint and non-semver keys are removed from the version map. The
    fields of the newest survivor are copied onto the top level unless the
    document already has them.

    Returns:
        The filtered record, or None when no version declares an engine.
    """
    name = document.get("name", "")
    versions = document.get("versions") or {}

    kept = select_versions(versions, sort_versions(versions))
    if not kept:
        progress(
            f"filtering out {name} because no valid versions with brackets-engine were found"
        )
        return None

    merged = dict(document)
    merged["versions"] = {key: versions[key] for key in kept}
    for key, value in versions[kept[0]].items():
        merged.setdefault(key, value)

    return ExtensionRecord.from_document(merged)


def filter_all(documents: list[dict[str, Any]]) -> list[ExtensionRecord]:
    """Filter every document, dropping packages with no engine release."""
    records = []
    for document in documents:
        record = filter_versions(document)
        if record is not None:
            records.append(record)
    return records
