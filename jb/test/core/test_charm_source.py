"""Tests for jb.core.charm_source module."""

from __future__ import annotations

from pathlib import Path

from jb.core.charm_source import CharmSource, SourceInvalid
from jb.core.result import Err, Ok


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


class TestLoad:
    def test_charmcraft_charm(self, tmp_path: Path) -> None:
        _write(tmp_path / "charmcraft.yaml", "type: charm\n")
        _write(
            tmp_path / "metadata.yaml",
            "name: oidc-gatekeeper\nresources:\n  oci-image:\n    type: oci-image\n",
        )

        assert CharmSource.load(tmp_path) == Ok(
            CharmSource(
                path=tmp_path, name="oidc-gatekeeper", kind="charmcraft", resources=("oci-image",)
            )
        )

    def test_name_in_charmcraft_yaml(self, tmp_path: Path) -> None:
        _write(tmp_path / "charmcraft.yaml", "name: foo\ntype: charm\n")

        result = CharmSource.load(tmp_path)

        assert isinstance(result, Ok)
        assert result.value.name == "foo"
        assert result.value.resources == ()

    def test_reactive_charm(self, tmp_path: Path) -> None:
        _write(tmp_path / "layer.yaml", "includes: ['layer:basic']\n")
        _write(tmp_path / "metadata.yaml", "name: legacy\n")

        result = CharmSource.load(tmp_path)

        assert isinstance(result, Ok)
        assert result.value.kind == "reactive"

    def test_not_a_directory(self, tmp_path: Path) -> None:
        assert CharmSource.load(tmp_path / "missing") == Err(
            SourceInvalid(tmp_path / "missing", "not a directory")
        )

    def test_unknown_layout(self, tmp_path: Path) -> None:
        _write(tmp_path / "metadata.yaml", "name: foo\n")
        result = CharmSource.load(tmp_path)
        assert isinstance(result, Err)
        assert "layer.yaml" in result.error.reason

    def test_missing_name(self, tmp_path: Path) -> None:
        _write(tmp_path / "charmcraft.yaml", "type: charm\n")
        result = CharmSource.load(tmp_path)
        assert isinstance(result, Err)
        assert "no name" in result.error.message

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        _write(tmp_path / "charmcraft.yaml", "type: [charm\n")
        result = CharmSource.load(tmp_path)
        assert isinstance(result, Err)
        assert "charmcraft.yaml" in result.error.reason

    def test_yaml_must_be_mapping(self, tmp_path: Path) -> None:
        _write(tmp_path / "charmcraft.yaml", "type: charm\n")
        _write(tmp_path / "metadata.yaml", "- a\n")
        result = CharmSource.load(tmp_path)
        assert isinstance(result, Err)
        assert "must be a mapping" in result.error.reason
