"""
TOML Manager — the ``create`` and ``update`` commands.

``create`` writes a fresh default docwen.toml.  ``update`` scans the target
tree, groups files sharing a name stem (``foo.h`` + ``foo.c``) and merges the
groups into the existing file without ever removing a group.
"""

import logging
import os
from typing import Dict, Iterable, List

from docwen.docfig import ConfigError, Docfig, FileGroup, Settings, get_absolute_root

logger = logging.getLogger(__name__)

DEFAULT_TOML = """[settings]
target = "src"
match_extensions = ["h", "c", "hpp", "cc", "cpp"]
mode = "MATCH_FUNCTION_DOCS"
ignore = []
use_qualifiers = true
"""

# Directories never worth scanning for tracked sources
_SKIP_DIRS = {
    ".git", "build", "cmake-build-debug", "cmake-build-release",
    "__pycache__", "node_modules", ".vscode", ".idea", "venv",
}


def _norm_path(p: str) -> str:
    return p.replace("\\", "/")


def create_default(path: str):
    """Write DEFAULT_TOML to a new file at *path*; never overwrites."""
    try:
        with open(path, "x", encoding="utf-8") as f:
            f.write(DEFAULT_TOML)
    except OSError as e:
        raise ConfigError(f"Failed to create new docwen.toml at {path}: {e}") from e
    logger.info("Created %s", path)


def discover_files(root: str) -> List[str]:
    """All files below *root*, relative to it, sorted."""
    files = []
    for dirpath, dirs, filenames in os.walk(root):
        dirs[:] = [d for d in dirs if d not in _SKIP_DIRS]
        for fname in filenames:
            rel = os.path.relpath(os.path.join(dirpath, fname), root)
            files.append(_norm_path(rel))
    return sorted(files)


def group_by_stem(paths: Iterable[str], settings: Settings) -> List[FileGroup]:
    """Group *paths* by lower-cased file stem.

    Only extensions listed in ``match_extensions`` are considered (case
    insensitive); stems listed in ``ignore`` are dropped.
    """
    extensions = {e.lower().lstrip(".") for e in settings.match_extensions}
    ignored = {s.lower() for s in settings.ignore}
    groups: Dict[str, List[str]] = {}

    for path in paths:
        stem, ext = os.path.splitext(os.path.basename(path))
        if not ext or ext[1:].lower() not in extensions:
            continue
        stem = stem.lower()
        if stem in ignored:
            continue
        groups.setdefault(stem, []).append(path)

    return [FileGroup(name=name, files=files) for name, files in groups.items()]


def update_toml(path: str):
    """Rescan the target tree and merge newly found groups into *path*."""
    docfig = Docfig.from_file(path)
    root = get_absolute_root(path, docfig.settings.target)

    files = discover_files(root)
    groups = [g for g in group_by_stem(files, docfig.settings) if len(g.files) > 1]
    logger.info("Found %d file(s) under %s, %d group(s)", len(files), root, len(groups))

    for group in groups:
        # FileGroup equality is by name, so a known group gets its files replaced
        if group in docfig.file_groups:
            slot = docfig.file_groups.index(group)
            docfig.file_groups[slot] = group
        else:
            docfig.file_groups.append(group)

    docfig.write_file(path)
