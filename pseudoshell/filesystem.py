"""Static, read-only virtual filesystem for pseudoshell.

The tree is rooted at ``~`` and built once per process. It provides:
- Path resolution for ``cd``/``ls`` against an allow-list of directories
- Sorted directory listings with pinned-last sentinel names
- Exact-match file reads

Nothing in this module ever mutates a tree after construction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from .errors import NotFoundError

LOGGER = logging.getLogger(__name__)

ROOT = "~"

# Placeholder entry kept at the end of every category listing
ONGOING_FILENAME = "on-going.txt"


class NodeKind(Enum):
    """Kind of a filesystem node."""

    DIRECTORY = "dir"
    FILE = "file"


@dataclass(frozen=True)
class Node:
    """A single directory or file in the tree."""

    path: str
    kind: NodeKind
    content: Optional[str] = None


@dataclass(frozen=True)
class Entry:
    """A directory listing entry (name relative to its parent)."""

    name: str
    kind: NodeKind

    @property
    def is_dir(self) -> bool:
        return self.kind is NodeKind.DIRECTORY


def split_path(path: str) -> List[str]:
    """Split a canonical path into segments below the root.

    ``"~"`` -> ``[]``, ``"~/a/b"`` -> ``["a", "b"]``.
    """
    if path == ROOT:
        return []
    if path.startswith(ROOT + "/"):
        path = path[len(ROOT) + 1 :]
    return [seg for seg in path.split("/") if seg]


def join_path(segments: Iterable[str]) -> str:
    """Join segments below the root into a canonical path."""
    segments = list(segments)
    if not segments:
        return ROOT
    return ROOT + "/" + "/".join(segments)


def normalize_path(path: str) -> str:
    """Strip trailing slashes; ``~`` (or an empty path) is the root."""
    path = path.strip()
    if not path or path == ROOT:
        return ROOT
    while len(path) > 1 and path.endswith("/"):
        path = path[:-1]
    return path


def _walk(segments: List[str], parts: Iterable[str]) -> List[str]:
    """Apply ``.``/``..``/name parts onto a segment list, never above root."""
    result = list(segments)
    for part in parts:
        if not part or part == ".":
            continue
        if part == "..":
            if result:
                result.pop()
            continue
        result.append(part)
    return result


def _anchor(base: str, target: str) -> Tuple[List[str], str]:
    """Return the starting segments and remaining text for a target path."""
    if target.startswith(ROOT + "/"):
        return [], target[len(ROOT) + 1 :]
    if target.startswith("/"):
        return [], target[1:]
    return split_path(base), target


class VirtualFilesystem:
    """Immutable directory/file tree with allow-list path resolution.

    Args:
        directories: Canonical directory paths (``~`` is added if missing)
        files: Mapping of canonical file path -> content
        category_parents: Top-level directories whose children may nest one
            extra level (e.g. ``~/certifications/cloud``)
        pinned_last: File names always listed after every other entry

    Raises:
        ValueError: If a file or directory has no registered parent directory
    """

    def __init__(
        self,
        directories: Iterable[str],
        files: Mapping[str, str],
        category_parents: Iterable[str] = (),
        pinned_last: Iterable[str] = (ONGOING_FILENAME,),
    ):
        dirs = {normalize_path(d) for d in directories}
        dirs.add(ROOT)
        self._directories: FrozenSet[str] = frozenset(dirs)
        self._files: Mapping[str, str] = MappingProxyType(
            {normalize_path(p): c for p, c in files.items()}
        )
        self._category_parents: FrozenSet[str] = frozenset(category_parents)
        self._pinned_last: FrozenSet[str] = frozenset(pinned_last)

        children: Dict[str, List[Entry]] = {d: [] for d in self._directories}
        for path in self._directories:
            if path == ROOT:
                continue
            parent = self._parent_of(path)
            children[parent].append(Entry(split_path(path)[-1], NodeKind.DIRECTORY))
        for path in self._files:
            if path in self._directories:
                raise ValueError(f"{path} is registered as both file and directory")
            parent = self._parent_of(path)
            children[parent].append(Entry(split_path(path)[-1], NodeKind.FILE))

        self._children: Mapping[str, Tuple[Entry, ...]] = MappingProxyType(
            {path: tuple(sorted(items, key=self._sort_key)) for path, items in children.items()}
        )

    def _parent_of(self, path: str) -> str:
        parent = join_path(split_path(path)[:-1])
        if parent not in self._directories:
            raise ValueError(f"parent directory {parent} of {path} is not registered")
        return parent

    def _sort_key(self, entry: Entry) -> Tuple[bool, str]:
        return (entry.name in self._pinned_last, entry.name)

    def _max_depth(self, segments: List[str]) -> int:
        if segments and segments[0] in self._category_parents:
            return 2
        return 1

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def directories(self) -> FrozenSet[str]:
        return self._directories

    def is_dir(self, path: str) -> bool:
        return normalize_path(path) in self._directories

    def is_file(self, path: str) -> bool:
        return normalize_path(path) in self._files

    def nodes(self) -> List[Node]:
        """Return every node in the tree, directories first, sorted by path."""
        result = [Node(d, NodeKind.DIRECTORY) for d in sorted(self._directories)]
        result.extend(
            Node(p, NodeKind.FILE, c) for p, c in sorted(self._files.items())
        )
        return result

    def try_resolve(self, base: str, target: str) -> Optional[str]:
        """Resolve a directory target, returning None if it is refused.

        Rules:
        - empty or ``.`` -> base
        - ``~`` -> root
        - ``..`` -> parent of base (root stays root)
        - anything else is applied onto root (``~/`` or ``/`` prefix) or
          onto base, and must land on a registered directory within the
          allowed nesting depth.
        """
        trimmed = (target or "").strip()
        if not trimmed or trimmed == ".":
            return base
        if trimmed in (ROOT, ROOT + "/"):
            return ROOT
        if trimmed == "..":
            return join_path(split_path(base)[:-1])

        start, rest = _anchor(base, trimmed)
        segments = _walk(start, rest.split("/"))
        if len(segments) > self._max_depth(segments):
            LOGGER.debug("Refused %r from %s: too deep", trimmed, base)
            return None
        candidate = join_path(segments)
        if candidate not in self._directories:
            LOGGER.debug("Refused %r from %s: not a directory", trimmed, base)
            return None
        return candidate

    def resolve(self, base: str, target: str) -> str:
        """Resolve a directory target; refused targets leave ``base`` unchanged."""
        resolved = self.try_resolve(base, target)
        return base if resolved is None else resolved

    def file_path(self, cwd: str, target: str) -> str:
        """Build the canonical path of a file argument relative to ``cwd``.

        No existence check is made; use :meth:`read_file` for that.
        """
        start, rest = _anchor(cwd, normalize_path(target))
        if rest == ROOT:
            return ROOT
        return join_path(_walk(start, rest.split("/")))

    def list_entries(self, path: str, show_hidden: bool = False) -> List[Entry]:
        """List the children of a directory.

        Entries are sorted by name, except pinned names which always come
        last. Dot-files are skipped unless ``show_hidden`` is set. Unknown
        paths and files have no children and yield an empty list.
        """
        entries = self._children.get(normalize_path(path), ())
        if show_hidden:
            return list(entries)
        return [e for e in entries if not e.name.startswith(".")]

    def read_file(self, path: str) -> str:
        """Return file content.

        Raises:
            NotFoundError: If no file is registered at ``path``
        """
        normalized = normalize_path(path)
        try:
            return self._files[normalized]
        except KeyError:
            raise NotFoundError(f"{normalized}: No such file") from None


# ---------- Portfolio tree ----------

CERTIFICATION_CATEGORIES = (
    "cloud",
    "cybersecurity",
    "leadership",
    "participations",
    "programming",
)

# (file name, category, content)
CERTIFICATION_FILES: Tuple[Tuple[str, str, str], ...] = (
    ("cloudCertificate1.txt", "cloud", "Migrate MySQL Databases to Cloud SQL – Verified credential."),
    (
        "leadershipCertificate1.txt",
        "leadership",
        "Leadership Certificate 1 – Core team leadership principles, communication, and strategic planning.",
    ),
    (
        "leadershipCertificate2.txt",
        "leadership",
        "Leadership Certificate 2 – Advanced leadership focusing on decision-making and organizational impact.",
    ),
    ("participationCertificate1.txt", "participations", "Participation Certificate 1 – Event / workshop acknowledgment."),
    ("participationCertificate2.txt", "participations", "Participation Certificate 2 – Recognized contribution to program/event."),
    ("participationCertificate3.txt", "participations", "Participation Certificate 3 – Recognized contribution to program/event."),
    ("participationCertificate4.txt", "participations", "Participation Certificate 4 – Recognized contribution to program/event."),
    (ONGOING_FILENAME, "cloud", "Additional cloud certifications in progress."),
    (ONGOING_FILENAME, "cybersecurity", "Cybersecurity certifications / labs in progress."),
    (ONGOING_FILENAME, "leadership", "Leadership development & training on-going."),
    (ONGOING_FILENAME, "participations", "Community & event participation on-going."),
    (ONGOING_FILENAME, "programming", "Advanced programming / specialization certifications in progress."),
)

PROJECT_FILES: Tuple[Tuple[str, str], ...] = (
    ("portfolio-terminal.md", "Interactive portfolio terminal + CTF micro puzzle + encryption visualizer."),
    ("guilds.md", "GDG On Campus UIC Guilds Platform - https://guilds.gdgocuic.org\nFor the University Club Fair"),
)


def init_portfolio_filesystem() -> VirtualFilesystem:
    """Build the portfolio home tree.

    The tree mirrors a small personal home directory: a few profile files
    at the root, project notes and certificates grouped by category.
    """
    directories = ["~", "~/projects", "~/certifications"]
    directories.extend(f"~/certifications/{c}" for c in CERTIFICATION_CATEGORIES)

    files: Dict[str, str] = {
        "~/about": (
            "This portfolio looks like a Kali terminal because that's where I think, "
            "experiment, and (carefully) break things. I like breaking concepts down, "
            "solving puzzles, and hiding a few of my own.\n"
            "There's a tiny CTF woven in, so wander the filesystem, read files, and see "
            "what you can uncover.\n"
            "Current focus: cybersecurity, automation, AI, and relentless learning.\n"
        ),
        "~/experience": "• CCTV Technician and Administrator\n• Freelancing Projects\n",
        "~/contact": "Email: mailto:geoffrey@diapana.dev\nGitHub: https://github.com/yyerf\n",
        "~/password.txt": 'Geof"fr3y"!@yyerf\nfor the CTF(?)\n',
    }
    for name, category, content in CERTIFICATION_FILES:
        files[f"~/certifications/{category}/{name}"] = content
    for name, content in PROJECT_FILES:
        files[f"~/projects/{name}"] = content

    return VirtualFilesystem(
        directories,
        files,
        category_parents=("certifications",),
        pinned_last=(ONGOING_FILENAME,),
    )


__all__ = [
    "ROOT",
    "ONGOING_FILENAME",
    "NodeKind",
    "Node",
    "Entry",
    "VirtualFilesystem",
    "split_path",
    "join_path",
    "normalize_path",
    "init_portfolio_filesystem",
]
