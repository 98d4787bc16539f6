"""Restricting a bundle to a subset of its applications.

``--app`` / ``--except`` narrow the working set of a command. The narrowed
bundle must stay deployable on its own, so relations are only kept when both
ends survive. Wiring to an excluded application is dropped without comment:
excluding an application is expected to take its relations with it.
"""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass

from .bundle import Bundle, endpoint_app
from .result import Err, Ok, Result

__all__ = ["InvalidSelection", "dropped_relations", "ensure_subset", "limit"]


@dataclass(frozen=True, slots=True)
class InvalidSelection:
    """Application names that are not part of the bundle.

    All offenders are reported at once so they can be fixed in one pass.
    """

    missing: tuple[str, ...]

    @property
    def message(self) -> str:
        return f"Apps not found in bundle: {', '.join(self.missing)}"


def ensure_subset(names: Collection[str], bundle: Bundle) -> Result[None, InvalidSelection]:
    missing = sorted(set(names) - set(bundle.applications))
    if missing:
        return Err(InvalidSelection(tuple(missing)))
    return Ok(None)


def limit(
    bundle: Bundle,
    include: Collection[str] = (),
    exclude: Collection[str] = (),
) -> Result[Bundle, InvalidSelection]:
    """Return a copy of ``bundle`` restricted to the selected applications.

    Args:
        bundle: Bundle to narrow. It is left untouched.
        include: Applications to keep. Empty means all of them.
        exclude: Applications to drop from the kept set.

    Returns:
        Ok(narrowed bundle), or Err(InvalidSelection) naming every unknown app.
    """
    checked = ensure_subset([*include, *exclude], bundle)
    if isinstance(checked, Err):
        return checked

    keep = set(include) if include else set(bundle.applications)
    keep -= set(exclude)

    narrowed = bundle.clone()
    narrowed.applications = {
        name: app for name, app in narrowed.applications.items() if name in keep
    }
    narrowed.relations = [
        (a, b)
        for a, b in narrowed.relations
        if endpoint_app(a) in narrowed.applications and endpoint_app(b) in narrowed.applications
    ]
    return Ok(narrowed)


def dropped_relations(before: Bundle, after: Bundle) -> list[tuple[str, str]]:
    """Relations present in ``before`` that a selection removed."""
    kept = set(after.relations)
    return [rel for rel in before.relations if rel not in kept]
