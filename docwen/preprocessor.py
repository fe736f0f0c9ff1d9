"""
Preprocessor masking for tree-sitter input.

Macro bodies are frequently not valid C/C++ on their own, so the parser must
never see them.  Instead of expanding them (which would shift every line and
column after an ``#include``), directive lines are overwritten with spaces:

  • lines whose first non-blank character is ``#`` are blanked
  • lines continued from a blanked line via a trailing backslash are blanked
    too, transitively
  • line terminators (``\\n`` and ``\\r\\n``) are kept exactly as they were

Rows, columns and the UTF-8 byte length of the text are therefore identical
before and after masking, and positions reported by tree-sitter on the masked
text point at the same spot in the original file.  Length is kept in bytes,
not in characters: a blanked ``#define S "é"`` is one ``str`` character
longer than the original line, but as long once encoded.
"""

import logging

logger = logging.getLogger(__name__)


def _blank(body: str) -> str:
    # One space per encoded byte keeps byte offsets (tree-sitter columns) stable.
    return " " * len(body.encode("utf-8"))


def mask_preprocessor(src: str) -> str:
    """Return *src* with every preprocessor line replaced by spaces."""
    out = []
    in_continuation = False
    masked = 0

    parts = src.split("\n")
    last = len(parts) - 1
    for i, part in enumerate(parts):
        if i == last:
            body, eol = part, ""
        elif part.endswith("\r"):
            body, eol = part[:-1], "\r\n"
        else:
            body, eol = part, "\n"

        if in_continuation or body.lstrip().startswith("#"):
            out.append(_blank(body))
            in_continuation = body.endswith("\\")
            masked += 1
        else:
            out.append(body)
            in_continuation = False

        out.append(eol)

    if masked:
        logger.debug("Masked %d preprocessor line(s)", masked)
    return "".join(out)
