"""
Docfig — the ``docwen.toml`` configuration model.

    [settings]
    target = "src"
    match_extensions = ["h", "c"]
    mode = "MATCH_FUNCTION_DOCS"
    ignore = []
    use_qualifiers = true

    [[filegroup]]
    name = "foo"
    files = ["foo.h", "foo.c"]

Unknown keys are rejected at every level.  File group names must be unique.
"""

import logging
import os
import tomllib
from enum import Enum
from typing import List

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """A docwen.toml could not be read, parsed, validated or written."""


class Mode(str, Enum):
    MATCH_FUNCTION_DOCS = "MATCH_FUNCTION_DOCS"


class Settings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    target: str
    match_extensions: List[str] = Field(default_factory=list)
    mode: Mode
    ignore: List[str] = Field(default_factory=list)
    use_qualifiers: bool = True


class FileGroup(BaseModel):
    """A named set of files whose shared functions must carry the same docs."""
    model_config = ConfigDict(extra="forbid")

    name: str
    files: List[str]

    def __eq__(self, other):
        # Groups are keyed by name; the file list may change on update
        if not isinstance(other, FileGroup):
            return NotImplemented
        return self.name == other.name

    def __hash__(self):
        return hash(self.name)


class Docfig(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    settings: Settings
    file_groups: List[FileGroup] = Field(default_factory=list, alias="filegroup")

    @classmethod
    def from_str(cls, raw: str, source: str = "<string>") -> "Docfig":
        try:
            data = tomllib.loads(raw)
            docfig = cls.model_validate(data)
        except (tomllib.TOMLDecodeError, ValidationError) as e:
            raise ConfigError(f"Failed to parse {source}: {e}") from e
        docfig.validate_groups()
        return docfig

    @classmethod
    def from_file(cls, path: str) -> "Docfig":
        """Read and validate a docwen.toml."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = f.read()
        except OSError as e:
            raise ConfigError(f"Failed to read {path}: {e}") from e

        docfig = cls.from_str(raw, source=path)
        logger.debug("Loaded %s: %d file group(s)", path, len(docfig.file_groups))
        return docfig

    def to_toml(self) -> str:
        data = self.model_dump(mode="json", by_alias=True)
        if not data["filegroup"]:
            del data["filegroup"]
        return tomli_w.dumps(data)

    def write_file(self, path: str):
        """Serialize back to TOML at *path*."""
        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(self.to_toml())
        except OSError as e:
            raise ConfigError(f"Failed to write to {path}: {e}") from e

    def validate_groups(self):
        seen = set()
        for group in self.file_groups:
            if group.name in seen:
                raise ConfigError(f"Duplicate filegroup name: {group.name}")
            seen.add(group.name)

    def root(self, toml_path: str) -> str:
        """Target directory resolved against the directory of *toml_path*."""
        return get_absolute_root(toml_path, self.settings.target)


def get_absolute_root(toml_path: str, target: str) -> str:
    """Resolve *target* relative to the directory holding *toml_path*.

    Absolute targets pass through.  The join is lexical: ``..`` and ``.``
    segments are kept as written.
    """
    if os.path.isabs(target):
        return target
    base = os.path.abspath(os.path.dirname(toml_path))
    return os.path.join(base, target)
