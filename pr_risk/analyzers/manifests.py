"""Dependency manifest detection shared by the security and complexity passes."""

from __future__ import annotations

from collections.abc import Callable

from pr_risk.diff_parser import FileChange

CARGO_METADATA_KEYS = ("version", "edition", "name", "description")


def _cargo_dependency(content: str) -> bool:
    return "=" in content and not content.startswith(CARGO_METADATA_KEYS)


def _requirements_dependency(content: str) -> bool:
    return True


def _package_json_dependency(content: str) -> bool:
    return ":" in content and '"' in content


def _go_mod_dependency(content: str) -> bool:
    return "/" in content


def _gemfile_dependency(content: str) -> bool:
    return content.startswith("gem ")


ECOSYSTEM_RULES: dict[str, Callable[[str], bool]] = {
    "Cargo.toml": _cargo_dependency,
    "package.json": _package_json_dependency,
    "requirements.txt": _requirements_dependency,
    "go.mod": _go_mod_dependency,
    "Gemfile": _gemfile_dependency,
}

COMPLEXITY_MANIFESTS = ("Cargo.toml", "package.json", "requirements.txt", "go.mod")


def manifest_kind(path: str, manifests: tuple[str, ...] | None = None) -> str | None:
    """Return the manifest name ``path`` ends with, if any."""
    for name in manifests if manifests is not None else tuple(ECOSYSTEM_RULES):
        if path.endswith(name):
            return name
    return None


def candidate_lines(file_change: FileChange) -> list[str]:
    """Stripped added lines that could declare a dependency."""
    lines: list[str] = []
    for hunk in file_change.hunks:
        for _, raw in hunk.added_lines():
            content = raw.strip()
            if not content or content.startswith(("[", "#")):
                continue
            lines.append(content)
    return lines


def ecosystem_dependencies(file_change: FileChange) -> list[str]:
    """Added dependency lines per the manifest's own line-shape rule."""
    kind = manifest_kind(file_change.path)
    if kind is None:
        return []
    is_dependency = ECOSYSTEM_RULES[kind]
    return [content for content in candidate_lines(file_change) if is_dependency(content)]


def generic_dependency_count(file_change: FileChange) -> int:
    """Count added assignment/key/path shaped lines in a complexity manifest."""
    if manifest_kind(file_change.path, COMPLEXITY_MANIFESTS) is None:
        return 0
    return sum(
        1
        for content in candidate_lines(file_change)
        if "=" in content or ":" in content or "/" in content
    )
