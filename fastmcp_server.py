"""
docwen — MCP Server

Exposes the docwen commands to an MCP client (e.g. GitHub Copilot):

  1. create_config — write a default docwen.toml
  2. update_config — rediscover header/source file groups under the target
  3. check_docs    — report functions whose doc comments differ between files
"""

from mcp.server.fastmcp import FastMCP
import os
import sys

# Ensure the docwen package is importable when run as a script
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from docwen.doc_check import check
from docwen.docfig import ConfigError, Docfig
from docwen.function_index import ParseError
from docwen.toml_manager import create_default, update_toml

# ═══════════════════════════════════════════════════════════════════════
#  Server Setup
# ═══════════════════════════════════════════════════════════════════════

mcp = FastMCP("docwen")


# ═══════════════════════════════════════════════════════════════════════
#  Tool 1 — Create Config
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def create_config(config_path: str = "docwen.toml") -> str:
    """
    Creates a default docwen.toml.  Never overwrites an existing file.

    Args:
        config_path: Path of the docwen.toml to create.
    """
    try:
        create_default(config_path)
    except ConfigError as e:
        return f"Error: {e}"
    return f"Created default docwen.toml at {config_path}"


# ═══════════════════════════════════════════════════════════════════════
#  Tool 2 — Update Config
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def update_config(config_path: str = "docwen.toml") -> str:
    """
    Scans the configured target directory, groups files sharing a name stem
    (e.g. foo.h + foo.c) and merges the groups into the docwen.toml.
    Existing groups are updated or kept, never removed.

    Args:
        config_path: Path of an existing docwen.toml.
    """
    if not os.path.exists(config_path):
        return f"Error: docwen.toml not found at {config_path}. Call create_config first."
    try:
        update_toml(config_path)
        groups = Docfig.from_file(config_path).file_groups
    except ConfigError as e:
        return f"Error: {e}"

    msg = f"Updated {config_path} successfully. Tracking {len(groups)} file group(s).\n"
    for g in groups:
        msg += f"- **{g.name}**: {', '.join(g.files)}\n"
    return msg


# ═══════════════════════════════════════════════════════════════════════
#  Tool 3 — Check Docs
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def check_docs(config_path: str = "docwen.toml") -> str:
    """
    Runs the docwen check: every function declared or defined in more than
    one file of a group must be preceded by the same comment block in each.

    Args:
        config_path: Path of the docwen.toml describing the file groups.
    """
    try:
        mismatches = check(config_path)
    except (ConfigError, ParseError, OSError) as e:
        return f"Error: {e}"

    if not mismatches:
        return "Found no mismatches!"

    msg = f"## {len(mismatches)} documentation mismatch(es)\n\n"
    for m in mismatches:
        msg += f"MISMATCH: {m}\n\n"
    return msg


if __name__ == "__main__":
    mcp.run()
