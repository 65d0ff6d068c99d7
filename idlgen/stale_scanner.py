"""Stale IDL source detection against a timestamp store."""

from __future__ import annotations

import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, Iterator, List, Sequence, Set

from .errors import ScanError
from .logging import get_logger

_EXCLUDED_DIRS = {
    "CVS",
    "SCCS",
    ".svn",
    ".git",
    ".hg",
    ".bzr",
}

# Version-control and editor droppings never considered as sources.
_DEFAULT_EXCLUDES: tuple[str, ...] = (
    "**/*~",
    "**/#*#",
    "**/.#*",
    "**/%*%",
    "**/._*",
    "**/.cvsignore",
    "**/.gitignore",
    "**/.gitattributes",
    "**/.hgignore",
    "**/.DS_Store",
)


@dataclass(frozen=True)
class GlobPattern:
    """Ant-style path pattern split into segments."""

    pattern: str
    segments: tuple[str, ...]

    @classmethod
    def parse(cls, pattern: str) -> "GlobPattern":
        normalized = pattern.strip().replace("\\", "/")
        if normalized.endswith("/"):
            normalized += "**"
        segments = tuple(part for part in normalized.split("/") if part)
        return cls(pattern=pattern, segments=segments)

    def matches(self, rel_path: str) -> bool:
        parts = [part for part in rel_path.split("/") if part]
        return _match_segments(self.segments, 0, parts, 0)


def _match_segments(
    pattern: Sequence[str], p_index: int, parts: Sequence[str], s_index: int
) -> bool:
    while p_index < len(pattern):
        segment = pattern[p_index]
        if segment == "**":
            # Collapse runs of ** and try every possible split point.
            while p_index < len(pattern) and pattern[p_index] == "**":
                p_index += 1
            if p_index == len(pattern):
                return True
            for start in range(s_index, len(parts) + 1):
                if _match_segments(pattern, p_index, parts, start):
                    return True
            return False
        if s_index >= len(parts):
            return False
        if not fnmatchcase(parts[s_index], segment):
            return False
        p_index += 1
        s_index += 1
    return s_index == len(parts)


def compile_patterns(patterns: Iterable[str]) -> List[GlobPattern]:
    return [GlobPattern.parse(pattern) for pattern in patterns if pattern and pattern.strip()]


def _matches_any(rel_path: str, patterns: Sequence[GlobPattern]) -> bool:
    return any(pattern.matches(rel_path) for pattern in patterns)


class StaleSourceScanner:
    """Finds source files newer than their copy in the timestamp store.

    Pattern matching is case-sensitive on every platform, including
    case-insensitive filesystems, so ``**/*.IDL`` does not match ``a.idl``.
    """

    def __init__(self, granularity_ms: int = 0) -> None:
        if granularity_ms < 0:
            raise ValueError("granularity_ms must not be negative")
        self.granularity_ms = granularity_ms
        self.logger = get_logger("scanner")

    def scan(
        self,
        source_root: Path,
        includes: Iterable[str],
        excludes: Iterable[str],
        timestamp_root: Path,
    ) -> Set[Path]:
        """Return the absolute paths of stale sources under ``source_root``.

        Symlinks are not resolved, so each path stays under ``source_root``.
        """
        source_root = Path(source_root)
        if not source_root.exists() or not source_root.is_dir():
            self.logger.debug("Source root %s is missing; nothing to scan", source_root)
            return set()

        include_patterns = compile_patterns(includes)
        exclude_patterns = compile_patterns(excludes)
        exclude_patterns.extend(compile_patterns(_DEFAULT_EXCLUDES))

        stale: Set[Path] = set()
        for path, rel_path in self._iter_candidates(source_root, include_patterns, exclude_patterns):
            if self._is_stale(path, Path(timestamp_root) / rel_path):
                stale.add(path.absolute())
        self.logger.debug("Scanned %s: %d stale file(s)", source_root, len(stale))
        return stale

    def _iter_candidates(
        self,
        root: Path,
        includes: Sequence[GlobPattern],
        excludes: Sequence[GlobPattern],
    ) -> Iterator[tuple[Path, str]]:
        def _on_error(exc: OSError) -> None:
            raise ScanError(
                f"Error scanning source root '{root}' for stale IDL files to reprocess.",
                context={"path": str(exc.filename or root), "reason": exc.strerror or str(exc)},
            ) from exc

        for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
            current_dir = Path(dirpath)
            rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

            dirnames[:] = sorted(name for name in dirnames if name not in _EXCLUDED_DIRS)

            for filename in sorted(filenames):
                rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
                if not _matches_any(rel_path, includes):
                    continue
                if _matches_any(rel_path, excludes):
                    continue
                yield current_dir / filename, rel_path

    def _is_stale(self, source: Path, target: Path) -> bool:
        try:
            source_mtime = source.stat().st_mtime_ns
        except OSError as exc:
            raise ScanError(
                f"Unable to read modification time of '{source}'.",
                context={"reason": exc.strerror or str(exc)},
            ) from exc
        try:
            target_mtime = target.stat().st_mtime_ns
        except FileNotFoundError:
            return True
        except OSError as exc:
            raise ScanError(
                f"Unable to read timestamp entry '{target}'.",
                context={"reason": exc.strerror or str(exc)},
            ) from exc
        return source_mtime > target_mtime + self.granularity_ms * 1_000_000


__all__ = ["GlobPattern", "StaleSourceScanner", "compile_patterns"]
