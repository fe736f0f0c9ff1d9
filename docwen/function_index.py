"""
Function Index — find functions that are tracked in more than one place.

Parses every file of a file group with tree-sitter (C++ grammar, which also
covers C) after masking preprocessor lines, and collects each function
declaration or definition under a canonical identity:

  • name   — bare identifier, or the ``outer::inner::name`` form when
             qualifiers are enabled
  • params — verbatim parameter-list text, parentheses and defaults included

Identities seen only once are dropped, leaving exactly the functions whose
documentation has to agree across several files (typically a header
declaration and its source definition).
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple, Union

import tree_sitter_cpp as tscpp
from tree_sitter import Language, Parser, Node

from docwen.preprocessor import mask_preprocessor

logger = logging.getLogger(__name__)

CPP_LANGUAGE = Language(tscpp.language())
_parser = Parser(CPP_LANGUAGE)

# Node types that name the function inside a function_declarator
_NAME_TYPES = {
    "identifier", "qualified_identifier", "operator_name",
    "field_identifier", "destructor_name",
}

# Node types whose "name" field contributes a scope qualifier
_SCOPE_TYPES = {
    "class_specifier", "struct_specifier", "union_specifier",
    "namespace_definition",
}

_CANDIDATE_TYPES = {"function_definition", "function_declarator"}


class ParseError(RuntimeError):
    """A source file is not valid UTF-8 or tree-sitter produced no tree for it."""


# ═══════════════════════════════════════════════════════════════════════
#  Data types
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class FilePosition:
    """One syntactic occurrence of a function."""
    path: str
    row: int              # 0-indexed
    column: int           # 0-indexed, in bytes


@dataclass(frozen=True)
class FunctionID:
    """Identity of a function: exact name text plus exact parameter text."""
    name: str
    params: str


# ═══════════════════════════════════════════════════════════════════════
#  Position Index
# ═══════════════════════════════════════════════════════════════════════

class PositionIndex:
    """FunctionID -> ordered list of FilePosition, in file traversal order."""

    def __init__(self):
        self._positions: Dict[FunctionID, List[FilePosition]] = {}

    def add(self, function_id: FunctionID, position: FilePosition):
        self._positions.setdefault(function_id, []).append(position)

    def retain_duplicates(self):
        """Drop every identity that occurs only once."""
        self._positions = {
            fid: positions for fid, positions in self._positions.items()
            if len(positions) > 1
        }

    def items(self) -> Iterator[Tuple[FunctionID, List[FilePosition]]]:
        return iter(self._positions.items())

    def __getitem__(self, function_id: FunctionID) -> List[FilePosition]:
        return self._positions[function_id]

    def __contains__(self, function_id) -> bool:
        return function_id in self._positions

    def __iter__(self) -> Iterator[FunctionID]:
        return iter(self._positions)

    def __len__(self) -> int:
        return len(self._positions)

    @property
    def total_positions(self) -> int:
        return sum(len(v) for v in self._positions.values())


# ═══════════════════════════════════════════════════════════════════════
#  AST helpers
# ═══════════════════════════════════════════════════════════════════════

def _as_bytes(source: Union[str, bytes]) -> bytes:
    if isinstance(source, str):
        return source.encode("utf-8")
    return source


def _node_text(node: Node, source: bytes) -> str:
    return source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")


def parse_source(source: Union[str, bytes]):
    """Parse C/C++ text (already masked) and return the tree-sitter tree."""
    tree = _parser.parse(_as_bytes(source))
    if tree is None:
        raise ParseError("tree-sitter returned no tree")
    return tree


def visit_all_nodes(node: Node, visit: Callable[[Node], None]):
    """Call *visit* on *node* and every descendant, in pre-order."""
    cursor = node.walk()
    visited = False
    while True:
        if not visited:
            visit(cursor.node)
            if cursor.goto_first_child():
                continue
        if cursor.goto_next_sibling():
            visited = False
            continue
        if cursor.goto_parent():
            visited = True
            continue
        break


def has_definition_ancestor(node: Node) -> bool:
    """True if some ancestor of *node* is a function_definition.

    A definition contains its own function_declarator; counting both would
    track the same function twice in one file.
    """
    current = node.parent
    while current is not None:
        if current.type == "function_definition":
            return True
        current = current.parent
    return False


def has_declarator_ancestor(node: Node) -> bool:
    """True if *node* sits on the declarator chain of another function_declarator.

    ``int (*get(int))(void);`` nests the named declarator inside the one
    carrying ``(void)``; only the outer one is tracked.  Parameter lists end
    the search, so callback parameters stay independent.
    """
    current = node.parent
    while current is not None and current.type != "parameter_list":
        if current.type == "function_declarator":
            return True
        current = current.parent
    return False


def _first_declarator(node: Node) -> Optional[Node]:
    # Pre-order, never entering parameter lists
    if node.type == "function_declarator":
        return node
    for child in node.children:
        if child.type == "parameter_list":
            continue
        found = _first_declarator(child)
        if found is not None:
            return found
    return None


def find_declarator(node: Node) -> Optional[Node]:
    """Innermost function_declarator at or below *node*.

    Descends through wrappers such as pointer/reference/parenthesized
    declarators, friend and template declarations, then keeps following the
    ``declarator`` field while it leads to another function_declarator.
    """
    found = _first_declarator(node)
    while found is not None:
        inner = found.child_by_field_name("declarator")
        deeper = _first_declarator(inner) if inner is not None else None
        if deeper is None:
            break
        found = deeper
    return found


# ═══════════════════════════════════════════════════════════════════════
#  Identity resolution
# ═══════════════════════════════════════════════════════════════════════

def get_name_and_params(declarator: Node, source: Union[str, bytes]) -> Tuple[Optional[str], Optional[str]]:
    """Return (name, params) text found among the direct children of *declarator*.

    The last name-like child wins.  Either value is None when absent.
    """
    source = _as_bytes(source)
    name = None
    params = None

    for child in declarator.children:
        if child.type in _NAME_TYPES:
            name = _node_text(child, source)
        elif child.type == "parameter_list":
            params = _node_text(child, source)

    if name is None:
        # Destructors can sit one level down, wrapped by the grammar
        for child in declarator.children:
            for gc in child.children:
                if gc.type == "destructor_name":
                    name = _node_text(gc, source)

    return name, params


def get_qualified_name(node: Node, source: Union[str, bytes], func_name: str) -> str:
    """Prefix *func_name* with every enclosing class/struct/union/namespace name."""
    source = _as_bytes(source)
    qualifiers = []

    current = node.parent
    while current is not None:
        if current.type in _SCOPE_TYPES:
            scope = current.child_by_field_name("name")
            if scope is not None:
                qualifiers.append(_node_text(scope, source))
        current = current.parent

    if not qualifiers:
        return func_name
    qualifiers.reverse()
    return "::".join(qualifiers) + "::" + func_name


def get_function_id(node: Node, source: Union[str, bytes], use_qualifiers: bool = True) -> Optional[FunctionID]:
    """Derive the FunctionID of a definition or declarator node, or None."""
    declarator = find_declarator(node)
    if declarator is None:
        return None

    name, params = get_name_and_params(declarator, source)
    if name is None:
        logger.debug(
            "Skipping unnamed %s at %d:%d",
            declarator.type, declarator.start_point[0], declarator.start_point[1],
        )
        return None
    if params is None:
        params = "()"

    if use_qualifiers:
        return FunctionID(get_qualified_name(node, source, name), params)
    return FunctionID(name.split("::")[-1], params)


# ═══════════════════════════════════════════════════════════════════════
#  Extraction
# ═══════════════════════════════════════════════════════════════════════

def extract_functions(root: Node, source: Union[str, bytes], file_path: str,
                      index: PositionIndex, use_qualifiers: bool = True) -> int:
    """Add every function occurrence below *root* to *index*.

    Returns the number of occurrences added.
    """
    source = _as_bytes(source)
    found = []

    def _visit(node: Node):
        if node.type not in _CANDIDATE_TYPES:
            return
        if node.type == "function_declarator" and (
                has_definition_ancestor(node) or has_declarator_ancestor(node)):
            return
        function_id = get_function_id(node, source, use_qualifiers)
        if function_id is None:
            return
        row, column = node.start_point
        found.append((function_id, FilePosition(file_path, row, column)))

    visit_all_nodes(root, _visit)

    for function_id, position in found:
        index.add(function_id, position)
    return len(found)


def read_source(path: str) -> str:
    """Read a source file as text, keeping its line endings untouched.

    Invalid UTF-8 aborts with ParseError: any substitution would move byte
    columns away from the file's own layout.
    """
    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            return f.read()
    except UnicodeDecodeError as e:
        raise ParseError(f"Failed to decode {path} as UTF-8: {e}") from e


def find_function_positions(paths: Iterable[str], use_qualifiers: bool = True) -> PositionIndex:
    """Index all functions in *paths* and keep those occurring more than once.

    Any unreadable file aborts the whole run.
    """
    index = PositionIndex()
    file_count = 0

    for path in paths:
        masked = mask_preprocessor(read_source(path))
        tree = parse_source(masked)
        if tree.root_node.has_error:
            logger.debug("Syntax errors in %s, indexing what parsed", path)

        count = extract_functions(tree.root_node, masked, path, index, use_qualifiers)
        logger.debug("%s: %d function occurrence(s)", path, count)
        file_count += 1

    total = len(index)
    index.retain_duplicates()
    logger.info(
        "Indexed %d file(s): %d function(s), %d tracked in more than one place "
        "(%d occurrence(s))",
        file_count, total, len(index), index.total_positions,
    )
    return index
