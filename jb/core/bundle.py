"""In-memory bundle model.

A bundle document looks like::

    name: kubeflow
    bundle: kubernetes
    applications:
      dex-auth:
        charm: ch:dex-auth-12
        scale: 1
      oidc-gatekeeper:
        charm: oidc-gatekeeper
        channel: latest/edge
        source: ./charms/oidc-gatekeeper
        resources:
          oci-image: gcr.io/arrikto/oidc-authservice:6ac9400
    relations:
      - [dex-auth:oidc-client, oidc-gatekeeper:oidc-client]

Only ``charm``, ``channel``, ``source`` and ``resources`` are interpreted;
every other key (``scale``, ``options``, ``machines``, ...) is carried
through untouched so that a saved bundle matches what was loaded.
"""

from __future__ import annotations

import copy
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from .charm_url import Channel, CharmRef, CharmUrl, parse_charm_ref
from .result import Err, Ok, Result
from .structured import StrDict, as_obj_list, as_str_dict

if TYPE_CHECKING:
    from jb.store.base import StoreClient, StoreError

__all__ = [
    "Application",
    "Bundle",
    "BundleError",
    "endpoint_app",
    "endpoint_interface",
]

# Use C speedups if available
_safe_loader = getattr(yaml, "CSafeLoader", yaml.SafeLoader)
_safe_dumper = getattr(yaml, "CSafeDumper", yaml.SafeDumper)

_APP_KEYS = ("charm", "channel", "source", "resources")


@dataclass(frozen=True, slots=True)
class BundleError:
    """A bundle document could not be read or is inconsistent."""

    message: str
    path: Path | None = None


def endpoint_app(endpoint: str) -> str:
    """``"mysql:db"`` -> ``"mysql"``."""
    return endpoint.split(":", 1)[0]


def endpoint_interface(endpoint: str) -> str:
    """``"mysql:db"`` -> ``"db"``; ``"mysql"`` -> ``""``."""
    if ":" not in endpoint:
        return ""
    return endpoint.rsplit(":", 1)[1]


@dataclass(frozen=True, slots=True)
class Application:
    """One application entry of a bundle.

    Instances are immutable; workflows produce updated copies with
    ``dataclasses.replace`` and the caller stores them back into the bundle.
    """

    charm: CharmRef | None = None
    channel: Channel | None = None
    source: str | None = None
    resources: dict[str, object] = field(default_factory=dict)
    extra: dict[str, object] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, name: str, data: StrDict) -> Result[Application, BundleError]:
        charm: CharmRef | None = None
        raw_charm = data.get("charm")
        if raw_charm is not None:
            if not isinstance(raw_charm, str):
                return Err(BundleError(f"Application {name}: charm must be a string"))
            parsed = parse_charm_ref(raw_charm)
            if isinstance(parsed, Err):
                return Err(BundleError(f"Application {name}: {parsed.error.message}"))
            charm = parsed.value

        channel: Channel | None = None
        raw_channel = data.get("channel")
        if raw_channel is not None:
            parsed_channel = Channel.parse(str(raw_channel))
            if isinstance(parsed_channel, Err):
                return Err(BundleError(f"Application {name}: {parsed_channel.error.message}"))
            channel = parsed_channel.value

        source = data.get("source")
        if source is not None and not isinstance(source, str):
            return Err(BundleError(f"Application {name}: source must be a path"))

        resources = data.get("resources", {})
        resources_dict = as_str_dict(resources) if resources is not None else {}
        if resources_dict is None:
            return Err(BundleError(f"Application {name}: resources must be a mapping"))

        extra = {k: v for k, v in data.items() if k not in _APP_KEYS}
        return Ok(
            cls(
                charm=charm,
                channel=channel,
                source=source,
                resources=dict(resources_dict),
                extra=extra,
            )
        )

    def to_dict(self) -> StrDict:
        """Serialize for saving. ``source`` is a build-time hint and is dropped."""
        out: StrDict = {}
        if self.charm is not None:
            out["charm"] = str(self.charm)
        if self.channel is not None:
            out["channel"] = str(self.channel)
        out.update(self.extra)
        if self.resources:
            out["resources"] = dict(self.resources)
        return out

    def source_path(self, name: str, bundle_path: Path) -> Path | None:
        """Locate the build source for this application, if it has one.

        A declared ``source:`` is taken relative to the bundle file. Otherwise
        ``charms/<name>`` beside the bundle is used when it exists.
        """
        base = bundle_path.parent
        if self.source:
            return (base / self.source).resolve()
        conventional = base / "charms" / name
        if conventional.is_dir():
            return conventional.resolve()
        return None

    @property
    def charm_url(self) -> CharmUrl | None:
        return self.charm if isinstance(self.charm, CharmUrl) else None


@dataclass(slots=True)
class Bundle:
    """A named graph of applications and the relations between them."""

    name: str | None = None
    applications: dict[str, Application] = field(default_factory=dict)
    relations: list[tuple[str, str]] = field(default_factory=list)
    extra: dict[str, object] = field(default_factory=dict)

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: StrDict, path: Path | None = None) -> Result[Bundle, BundleError]:
        raw_apps = data.get("applications", data.get("services"))
        apps_table = as_str_dict(raw_apps) if raw_apps is not None else {}
        if apps_table is None:
            return Err(BundleError("applications must be a mapping", path=path))

        applications: dict[str, Application] = {}
        for app_name, app_data in apps_table.items():
            table = as_str_dict(app_data) if app_data is not None else {}
            if table is None:
                return Err(BundleError(f"Application {app_name} must be a mapping", path=path))
            app = Application.from_dict(app_name, table)
            if isinstance(app, Err):
                return Err(BundleError(app.error.message, path=path))
            applications[app_name] = app.value

        raw_relations = data.get("relations", [])
        relation_list = as_obj_list(raw_relations) if raw_relations is not None else []
        if relation_list is None:
            return Err(BundleError("relations must be a list", path=path))

        relations: list[tuple[str, str]] = []
        for rel in relation_list:
            pair = as_obj_list(rel)
            if pair is None or len(pair) != 2 or not all(isinstance(e, str) for e in pair):
                return Err(BundleError(f"Relation {rel!r} must be a pair of endpoints", path=path))
            relations.append((str(pair[0]), str(pair[1])))

        name = data.get("name")
        if name is not None and not isinstance(name, str):
            return Err(BundleError("name must be a string", path=path))

        extra = {
            k: v
            for k, v in data.items()
            if k not in ("name", "applications", "services", "relations")
        }
        bundle = cls(name=name, applications=applications, relations=relations, extra=extra)

        dangling = bundle.dangling_endpoints()
        if dangling:
            return Err(
                BundleError(
                    f"Relations reference unknown applications: {', '.join(dangling)}",
                    path=path,
                )
            )
        return Ok(bundle)

    @classmethod
    def loads(cls, text: str, path: Path | None = None) -> Result[Bundle, BundleError]:
        try:
            data: object = yaml.load(text, Loader=_safe_loader)  # noqa: S506
        except yaml.YAMLError as e:
            return Err(BundleError(f"Invalid YAML: {e}", path=path))
        table = as_str_dict(data)
        if table is None:
            return Err(BundleError("Bundle root must be a mapping", path=path))
        return cls.from_dict(table, path=path)

    @classmethod
    def load(cls, path: Path) -> Result[Bundle, BundleError]:
        """Load a bundle from a local YAML file."""
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return Err(BundleError(f"Bundle file not found: {path}", path=path))
        except OSError as e:
            return Err(BundleError(f"Error reading bundle: {e}", path=path))
        return cls.loads(text, path=path)

    @classmethod
    def fetch(
        cls,
        url: CharmUrl,
        channel: Channel | None,
        client: StoreClient,
    ) -> Result[Bundle, BundleError | StoreError]:
        """Load a bundle published to a store, by revision or channel."""
        text = client.fetch_bundle(url, channel)
        if isinstance(text, Err):
            return text
        return cls.loads(text.value)

    # -------------------------------------------------------------------------
    # Saving
    # -------------------------------------------------------------------------

    def to_dict(self) -> StrDict:
        out: StrDict = {}
        if self.name is not None:
            out["name"] = self.name
        out.update(self.extra)
        out["applications"] = {name: app.to_dict() for name, app in self.applications.items()}
        if self.relations:
            out["relations"] = [list(rel) for rel in self.relations]
        return out

    def dumps(self) -> str:
        dumped: Any = yaml.dump(
            self.to_dict(),
            Dumper=_safe_dumper,
            sort_keys=False,
            default_flow_style=False,
        )
        return str(dumped)

    def save(self, path: Path) -> Result[Path, BundleError]:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(self.dumps(), encoding="utf-8")
        except OSError as e:
            return Err(BundleError(f"Error writing bundle: {e}", path=path))
        return Ok(path)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def clone(self) -> Bundle:
        """Deep copy, so a pinned variant never touches the original."""
        return copy.deepcopy(self)

    def endpoints(self) -> Iterator[str]:
        for a, b in self.relations:
            yield a
            yield b

    def dangling_endpoints(self) -> list[str]:
        """Endpoints whose application is not part of the bundle."""
        return sorted({e for e in self.endpoints() if endpoint_app(e) not in self.applications})

    def sources(self, bundle_path: Path) -> dict[str, Path]:
        """Applications that can be built from source, in declaration order."""
        out: dict[str, Path] = {}
        for name, app in self.applications.items():
            source = app.source_path(name, bundle_path)
            if source is not None:
                out[name] = source
        return out
