from __future__ import annotations

import pytest

from ._utils import iter_python_files, jb_root, matches_prefix, parse_imports


@pytest.mark.parametrize(
    ("package", "forbidden"),
    [
        ("core", ("jb.cli", "jb.services", "jb.output")),
        ("store", ("jb.cli", "jb.services", "jb.output")),
        ("services", ("jb.cli",)),
        ("output", ("jb.cli",)),
    ],
)
def test_lower_layers_do_not_import_upper_layers(
    package: str, forbidden: tuple[str, ...]
) -> None:
    root = jb_root()
    offenders: list[str] = []

    for file_path in iter_python_files(root / package):
        rel = file_path.relative_to(root)
        for item in parse_imports(file_path):
            if any(matches_prefix(item.module, prefix) for prefix in forbidden):
                offenders.append(f"{rel}:{item.line}: forbidden import '{item.module}'")

    assert not offenders, f"{package} dependency violations:\n" + "\n".join(offenders)
