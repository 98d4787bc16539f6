"""Charm source directories.

A source directory is what gets built into a charm. Two flavours exist:

- charmcraft charms, identified by ``charmcraft.yaml`` (built with
  ``charmcraft pack``)
- reactive charms, identified by ``layer.yaml`` (built with ``charm build``)

Both carry a ``metadata.yaml`` with at least a ``name``. Newer charmcraft
projects may keep ``name`` in ``charmcraft.yaml`` instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import yaml

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_str, get_table

__all__ = ["CharmSource", "SourceInvalid", "SourceKind"]

SourceKind = Literal["charmcraft", "reactive"]


@dataclass(frozen=True, slots=True)
class SourceInvalid:
    path: Path
    reason: str

    @property
    def message(self) -> str:
        return f"Invalid charm source {self.path}: {self.reason}"


@dataclass(frozen=True, slots=True)
class CharmSource:
    path: Path
    name: str
    kind: SourceKind
    resources: tuple[str, ...] = ()

    @classmethod
    def load(cls, path: Path) -> Result[CharmSource, SourceInvalid]:
        if not path.is_dir():
            return Err(SourceInvalid(path, "not a directory"))

        charmcraft = _read_yaml(path / "charmcraft.yaml")
        if isinstance(charmcraft, Err):
            return charmcraft
        metadata = _read_yaml(path / "metadata.yaml")
        if isinstance(metadata, Err):
            return metadata

        if charmcraft.value is not None:
            kind: SourceKind = "charmcraft"
        elif (path / "layer.yaml").is_file():
            kind = "reactive"
        else:
            return Err(SourceInvalid(path, "neither charmcraft.yaml nor layer.yaml found"))

        merged: StrDict = {**(charmcraft.value or {}), **(metadata.value or {})}
        name = get_str(merged, "name")
        if name is None:
            return Err(SourceInvalid(path, "charm has no name in metadata.yaml"))

        resources = get_table(merged, "resources") or {}
        return Ok(cls(path=path, name=name, kind=kind, resources=tuple(resources)))


def _read_yaml(path: Path) -> Result[StrDict | None, SourceInvalid]:
    """Read an optional YAML mapping. Missing files yield Ok(None)."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return Ok(None)
    except OSError as e:
        return Err(SourceInvalid(path.parent, f"cannot read {path.name}: {e}"))

    try:
        data: object = yaml.safe_load(text)
    except yaml.YAMLError as e:
        return Err(SourceInvalid(path.parent, f"{path.name} is not valid YAML: {e}"))

    if data is None:
        return Ok({})
    table = as_str_dict(data)
    if table is None:
        return Err(SourceInvalid(path.parent, f"{path.name} must be a mapping"))
    return Ok(table)
