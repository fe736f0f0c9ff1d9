"""
Doc Check — verify that every tracked function carries the same doc block
everywhere it appears.

For each function found in more than one file of a group, the lines directly
above every occurrence are compared in lock-step, walking upwards for as long
as any occurrence still shows a comment line:

  • trimmed lines all equal      → move one line further up
  • no occurrence shows a comment → docs agree, stop
  • any line differs             → report one mismatch, stop

A doc block that is shorter in one file than in another is therefore a
mismatch too: at some offset one side reads ``""`` while the other still
reads a comment.
"""

import logging
import os
from dataclasses import dataclass
from typing import Iterable, List, Optional

from docwen.docfig import Docfig, FileGroup
from docwen.function_index import FilePosition, PositionIndex, find_function_positions, read_source

logger = logging.getLogger(__name__)

_COMMENT_PREFIXES = ("//", "/*", "*")


# ═══════════════════════════════════════════════════════════════════════
#  Data types
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class LineSource:
    """Source text of one occurrence, anchored at the function's start row."""
    src: str
    init_row: int

    def __post_init__(self):
        self._lines = self.src.split("\n")

    @classmethod
    def from_position(cls, position: FilePosition) -> "LineSource":
        return cls(read_source(position.path), position.row)

    def trimmed_line_by_offset(self, offset: int) -> str:
        """Trimmed line at ``init_row + offset``; "" when out of range."""
        row = self.init_row + offset
        if row < 0 or row >= len(self._lines):
            return ""
        return self._lines[row].strip()


@dataclass
class Mismatch:
    """First divergent doc line of one function and all its occurrences."""
    line: str
    positions: List[FilePosition]

    def format(self, root: str) -> str:
        return format_mismatch(self.line, self.positions, root)


# ═══════════════════════════════════════════════════════════════════════
#  Line helpers
# ═══════════════════════════════════════════════════════════════════════

def is_comment(line: str) -> bool:
    """True if *line* starts, after trimming, with ``//``, ``/*`` or ``*``."""
    return line.strip().startswith(_COMMENT_PREFIXES)


def doc_lines_match(lines: List[str]) -> bool:
    """True if all trimmed lines are equal."""
    if not lines:
        return True
    first = lines[0].strip()
    return all(line.strip() == first for line in lines)


def _display_path(path: str, root: str) -> str:
    """*path* relative to *root* when it lies lexically below it."""
    norm_path = os.path.normpath(path)
    norm_root = os.path.normpath(root)
    if norm_path.startswith(norm_root.rstrip(os.sep) + os.sep):
        return os.path.relpath(norm_path, norm_root).replace("\\", "/")
    return path.replace("\\", "/")


def format_mismatch(line: str, positions: Iterable[FilePosition], root: str) -> str:
    """``"<line>"`` followed by ``-> [path:row:column, ...]`` on the next line."""
    spots = ", ".join(
        f"{_display_path(p.path, root)}:{p.row}:{p.column}" for p in positions
    )
    return f'"{line}"\n-> [{spots}]'


# ═══════════════════════════════════════════════════════════════════════
#  Comparison
# ═══════════════════════════════════════════════════════════════════════

def _reported_line(lines: List[str]) -> str:
    # Prefer the first occurrence's line; fall back to the first comment seen
    if is_comment(lines[0]):
        return lines[0]
    for line in lines:
        if is_comment(line):
            return line
    return lines[0]


def compare_docs(sources: List[LineSource]) -> Optional[str]:
    """Walk upwards through all *sources*; return the first divergent line or None."""
    offset = -1
    while True:
        lines = [s.trimmed_line_by_offset(offset) for s in sources]
        if not any(is_comment(line) for line in lines):
            return None
        if not doc_lines_match(lines):
            return _reported_line(lines)
        offset -= 1


def find_mismatches(index: PositionIndex) -> List[Mismatch]:
    """One Mismatch per function in *index* whose doc blocks disagree."""
    mismatches = []
    for function_id, positions in index.items():
        sources = [LineSource.from_position(p) for p in positions]
        line = compare_docs(sources)
        if line is not None:
            logger.debug("Doc mismatch for %s%s", function_id.name, function_id.params)
            mismatches.append(Mismatch(line, list(positions)))
    return mismatches


def check_file_groups(groups: Iterable[FileGroup], root: str, use_qualifiers: bool = True) -> List[str]:
    """Run the doc check over every group; return formatted mismatches in group order."""
    results: List[str] = []
    for group in groups:
        paths = [os.path.join(root, f) for f in group.files]
        index = find_function_positions(paths, use_qualifiers)
        mismatches = find_mismatches(index)
        logger.info(
            "Group '%s': %d tracked function(s), %d mismatch(es)",
            group.name, len(index), len(mismatches),
        )
        results.extend(m.format(root) for m in mismatches)
    return results


def check(toml_path: str) -> List[str]:
    """Implements the docwen *check* command for the docwen.toml at *toml_path*.

    An empty list means no mismatches.  Config, I/O and parse failures
    propagate and abort the whole check.
    """
    docfig = Docfig.from_file(toml_path)
    root = docfig.root(toml_path)
    mismatches = check_file_groups(docfig.file_groups, root, docfig.settings.use_qualifiers)
    logger.info("Checked %d group(s): %d mismatch(es)", len(docfig.file_groups), len(mismatches))
    return mismatches
