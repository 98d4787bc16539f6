"""Tests for jb.core.bundle module."""

from __future__ import annotations

from pathlib import Path

import pytest

from jb.core.bundle import Application, Bundle, endpoint_app, endpoint_interface
from jb.core.charm_url import Channel, CharmUrl, LocalCharm, Risk, Store
from jb.core.result import Err, Ok
from jb.store.base import StoreError

BUNDLE_YAML = """\
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
    options:
      public-url: http://10.64.140.43.nip.io
relations:
- [dex-auth:oidc-client, oidc-gatekeeper:oidc-client]
"""


class TestEndpoints:
    def test_app(self) -> None:
        assert endpoint_app("mysql:db") == "mysql"
        assert endpoint_app("mysql") == "mysql"

    def test_interface(self) -> None:
        assert endpoint_interface("mysql:db") == "db"
        assert endpoint_interface("mysql") == ""


class TestLoad:
    def test_loads(self) -> None:
        result = Bundle.loads(BUNDLE_YAML)
        assert isinstance(result, Ok)
        bundle = result.value

        assert bundle.name == "kubeflow"
        assert list(bundle.applications) == ["dex-auth", "oidc-gatekeeper"]
        assert bundle.relations == [("dex-auth:oidc-client", "oidc-gatekeeper:oidc-client")]
        assert bundle.extra == {"bundle": "kubernetes"}

        gatekeeper = bundle.applications["oidc-gatekeeper"]
        assert gatekeeper.charm == CharmUrl(name="oidc-gatekeeper")
        assert gatekeeper.channel == Channel(Risk.EDGE, track="latest")
        assert gatekeeper.source == "./charms/oidc-gatekeeper"
        assert gatekeeper.resources == {"oci-image": "gcr.io/arrikto/oidc-authservice:6ac9400"}
        assert gatekeeper.extra == {"options": {"public-url": "http://10.64.140.43.nip.io"}}

    def test_services_alias(self) -> None:
        result = Bundle.loads("services:\n  a:\n    charm: cs:~me/a\n")
        assert isinstance(result, Ok)
        assert list(result.value.applications) == ["a"]

    def test_dangling_relation_rejected(self) -> None:
        text = "applications:\n  a: {charm: a}\nrelations:\n- [a:db, ghost:db]\n"
        result = Bundle.loads(text)
        assert isinstance(result, Err)
        assert "ghost:db" in result.error.message

    def test_bad_relation_shape(self) -> None:
        text = "applications:\n  a: {charm: a}\nrelations:\n- [a:db]\n"
        assert isinstance(Bundle.loads(text), Err)

    def test_bad_charm(self) -> None:
        result = Bundle.loads("applications:\n  a: {charm: 'xx:nope'}\n")
        assert isinstance(result, Err)
        assert "Application a" in result.error.message

    def test_invalid_yaml(self) -> None:
        result = Bundle.loads("applications: [")
        assert isinstance(result, Err)
        assert "Invalid YAML" in result.error.message

    def test_root_must_be_mapping(self) -> None:
        assert isinstance(Bundle.loads("- a\n- b\n"), Err)

    def test_missing_file(self, tmp_path: Path) -> None:
        path = tmp_path / "bundle.yaml"
        result = Bundle.load(path)
        assert isinstance(result, Err)
        assert result.error.path == path

    def test_app_without_charm(self) -> None:
        result = Bundle.loads("applications:\n  a:\n    scale: 2\n")
        assert isinstance(result, Ok)
        assert result.value.applications["a"].charm is None


class TestSave:
    def test_roundtrip_preserves_order_and_extras(self, tmp_path: Path) -> None:
        bundle = Bundle.loads(BUNDLE_YAML).unwrap()
        path = tmp_path / "out" / "bundle.yaml"

        assert bundle.save(path) == Ok(path)
        reloaded = Bundle.load(path).unwrap()

        assert list(reloaded.applications) == list(bundle.applications)
        assert reloaded.relations == bundle.relations
        assert reloaded.extra == bundle.extra
        assert reloaded.applications["dex-auth"].extra == {"scale": 1}

    def test_source_is_not_saved(self) -> None:
        bundle = Bundle.loads(BUNDLE_YAML).unwrap()
        assert "source:" not in bundle.dumps()

    def test_keys_keep_document_order(self) -> None:
        text = Bundle.loads(BUNDLE_YAML).unwrap().dumps()
        assert text.index("name:") < text.index("applications:") < text.index("relations:")

    def test_local_charm_written_as_path(self) -> None:
        bundle = Bundle(applications={"a": Application(charm=LocalCharm(Path("/tmp/a.charm")))})
        assert "charm: /tmp/a.charm" in bundle.dumps()

    def test_unprefixed_charm_saved_without_store(self) -> None:
        bundle = Bundle.loads("applications:\n  a:\n    charm: redis\n").unwrap()
        assert "charm: redis\n" in bundle.dumps()


class TestClone:
    def test_clone_is_independent(self) -> None:
        bundle = Bundle.loads(BUNDLE_YAML).unwrap()
        copy = bundle.clone()

        copy.applications.pop("dex-auth")
        copy.relations.clear()

        assert "dex-auth" in bundle.applications
        assert bundle.relations


class TestSourcePath:
    def test_declared_source_relative_to_bundle(self, tmp_path: Path) -> None:
        app = Application(source="./src/foo")
        expected = (tmp_path / "src" / "foo").resolve()
        assert app.source_path("foo", tmp_path / "bundle.yaml") == expected

    def test_conventional_charms_dir(self, tmp_path: Path) -> None:
        (tmp_path / "charms" / "foo").mkdir(parents=True)
        app = Application(charm=CharmUrl(name="foo"))
        expected = (tmp_path / "charms" / "foo").resolve()
        assert app.source_path("foo", tmp_path / "bundle.yaml") == expected

    def test_no_source(self, tmp_path: Path) -> None:
        app = Application(charm=CharmUrl(name="foo"))
        assert app.source_path("foo", tmp_path / "bundle.yaml") is None

    def test_sources(self, tmp_path: Path) -> None:
        (tmp_path / "charms" / "b").mkdir(parents=True)
        bundle = Bundle(
            applications={"a": Application(charm=CharmUrl(name="a")), "b": Application()}
        )
        expected = (tmp_path / "charms" / "b").resolve()
        assert bundle.sources(tmp_path / "bundle.yaml") == {"b": expected}


class _BundleStore:
    def __init__(self, text: str | None) -> None:
        self.text = text
        self.calls: list[tuple[CharmUrl, Channel | None]] = []

    def fetch_bundle(self, url: CharmUrl, channel: Channel | None):
        self.calls.append((url, channel))
        if self.text is None:
            return Err(StoreError(kind="fetch", message="not found"))
        return Ok(self.text)


class TestFetch:
    def test_fetch_loads_published_bundle(self) -> None:
        store = _BundleStore(BUNDLE_YAML)
        url = CharmUrl(name="kubeflow", store=Store.CHARMHUB)

        result = Bundle.fetch(url, Channel(Risk.STABLE), store)  # type: ignore[arg-type]

        assert isinstance(result, Ok)
        assert result.value.name == "kubeflow"
        assert store.calls == [(url, Channel(Risk.STABLE))]

    def test_fetch_propagates_store_error(self) -> None:
        store = _BundleStore(None)
        result = Bundle.fetch(CharmUrl(name="nope"), None, store)  # type: ignore[arg-type]
        assert isinstance(result, Err)
        assert isinstance(result.error, StoreError)


@pytest.mark.parametrize("key", ["applications", "services"])
def test_empty_applications(key: str) -> None:
    result = Bundle.loads(f"{key}: {{}}\n")
    assert isinstance(result, Ok)
    assert result.value.applications == {}
