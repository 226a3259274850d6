"""File content and patch retrieval.

Analysis never reaches for git or the filesystem directly; it is handed a
ContentSource. GitContentSource shells out to ``git``; InMemoryContentSource
serves fixed text for tests and library callers.
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Mapping, Optional, Protocol

from .logging_config import get_logger

logger = get_logger(__name__)

# Ref naming the checked-out working tree instead of a commit.
WORKING_TREE = "."

GIT_TIMEOUT_SECONDS = 30


class ContentSource(Protocol):
    """Where file versions and diffs come from."""

    def get_content(self, path: str, ref: str) -> Optional[str]:
        """Text of ``path`` at ``ref``, or None when it does not exist there."""
        ...

    def get_patch(self, path: str, base_ref: str, head_ref: str) -> Optional[str]:
        """Zero-context unified diff of ``path`` between two refs, or None."""
        ...

    def has_diff(self, path: str, base_ref: str, head_ref: str) -> bool: ...


class GitContentSource:
    """Reads versions with ``git show`` and patches with ``git diff``."""

    def __init__(self, repo_path: str = "."):
        self.repo_path = str(Path(repo_path).resolve())

    def _run_git(self, args: list[str]) -> Optional[str]:
        try:
            result = subprocess.run(
                ["git", "-C", self.repo_path, *args],
                capture_output=True,
                text=True,
                timeout=GIT_TIMEOUT_SECONDS,
            )
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            logger.debug(f"git {' '.join(args)} failed: {e}")
            return None
        if result.returncode != 0:
            logger.debug(f"git {' '.join(args)} exited {result.returncode}: {result.stderr.strip()}")
            return None
        return result.stdout

    def get_content(self, path: str, ref: str) -> Optional[str]:
        if ref == WORKING_TREE:
            file_path = Path(self.repo_path) / path
            try:
                return file_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.debug(f"Cannot read {file_path}: {e}")
                return None
        return self._run_git(["show", f"{ref}:{path}"])

    def get_patch(self, path: str, base_ref: str, head_ref: str) -> Optional[str]:
        if head_ref == WORKING_TREE and not (Path(self.repo_path) / path).exists():
            return None
        args = ["diff", "--unified=0", base_ref]
        if head_ref != WORKING_TREE:
            args.append(head_ref)
        args += ["--", path]
        return self._run_git(args)

    def has_diff(self, path: str, base_ref: str, head_ref: str) -> bool:
        """True when git reports at least one hunk; git failures count as no diff."""
        patch = self.get_patch(path, base_ref, head_ref)
        return patch is not None and "@@" in patch


class InMemoryContentSource:
    """Content keyed by ``(ref, path)``; patches are optional.

    Usage:
        source = InMemoryContentSource({
            ("main", "src/a.ts"): "export function a() {}",
            ("HEAD", "src/a.ts"): "export function a(x: number) {}",
        })
    """

    def __init__(
        self,
        contents: Mapping[tuple[str, str], str],
        patches: Optional[Mapping[tuple[str, str, str], str]] = None,
    ):
        self.contents = dict(contents)
        self.patches = dict(patches or {})

    def get_content(self, path: str, ref: str) -> Optional[str]:
        return self.contents.get((ref, path))

    def get_patch(self, path: str, base_ref: str, head_ref: str) -> Optional[str]:
        return self.patches.get((path, base_ref, head_ref))

    def has_diff(self, path: str, base_ref: str, head_ref: str) -> bool:
        return self.get_content(path, base_ref) != self.get_content(path, head_ref)
