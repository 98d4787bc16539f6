"""Tests for jb.core.charm_url module."""

from __future__ import annotations

from pathlib import Path

import pytest

from jb.core.charm_url import (
    Channel,
    CharmUrl,
    LocalCharm,
    Risk,
    Store,
    parse_charm_ref,
)
from jb.core.result import Err, Ok


class TestCharmUrlParse:
    def test_bare_name_names_no_store(self) -> None:
        assert CharmUrl.parse("mysql") == Ok(CharmUrl(name="mysql", store=None))

    def test_full_reference(self) -> None:
        result = CharmUrl.parse("cs:~containers/flannel-42")
        assert result == Ok(
            CharmUrl(name="flannel", store=Store.CHARMSTORE, namespace="containers", revision=42)
        )

    def test_name_with_dashes_and_revision(self) -> None:
        result = CharmUrl.parse("ch:oidc-gatekeeper-7")
        assert isinstance(result, Ok)
        assert result.value.name == "oidc-gatekeeper"
        assert result.value.revision == 7

    def test_name_with_dashes_no_revision(self) -> None:
        result = CharmUrl.parse("oidc-gatekeeper")
        assert isinstance(result, Ok)
        assert result.value.name == "oidc-gatekeeper"
        assert result.value.revision is None

    def test_long_store_name(self) -> None:
        result = CharmUrl.parse("charmhub:dex-auth")
        assert isinstance(result, Ok)
        assert result.value.store is Store.CHARMHUB

    @pytest.mark.parametrize(
        "value",
        ["", "xx:foo", "~/foo", "cs:~containers", "a/b/c", "Foo!"],
    )
    def test_invalid(self, value: str) -> None:
        result = CharmUrl.parse(value)
        assert isinstance(result, Err)
        assert value in result.error.message

    @pytest.mark.parametrize(
        "url",
        [
            CharmUrl(name="mysql"),
            CharmUrl(name="mysql", revision=3),
            CharmUrl(name="mysql", store=Store.CHARMHUB, revision=3),
            CharmUrl(name="flannel", store=Store.CHARMSTORE, namespace="containers"),
            CharmUrl(name="k8s-2", store=Store.CHARMSTORE, namespace="a-b", revision=12),
        ],
    )
    def test_str_parses_back(self, url: CharmUrl) -> None:
        assert CharmUrl.parse(str(url)) == Ok(url)

    def test_str_prefix_only_when_store_named(self) -> None:
        assert str(CharmUrl(name="foo", store=Store.CHARMHUB, revision=3)) == "ch:foo-3"
        assert str(CharmUrl(name="foo", revision=3)) == "foo-3"


class TestCharmUrlHelpers:
    def test_with_revision(self) -> None:
        url = CharmUrl(name="foo").with_revision(7)
        assert url.is_resolved
        assert url.revision == 7

    def test_unpinned(self) -> None:
        assert not CharmUrl(name="foo", revision=7).unpinned().is_resolved

    def test_in_store_fills_missing_store(self) -> None:
        url = CharmUrl.parse("~containers/flannel").unwrap().in_store(Store.CHARMSTORE)
        assert str(url) == "cs:~containers/flannel"

    def test_in_store_keeps_named_store(self) -> None:
        url = CharmUrl(name="foo", store=Store.CHARMHUB)
        assert url.in_store(Store.CHARMSTORE) is url

    def test_entity(self) -> None:
        assert CharmUrl(name="foo", namespace="me").entity == "~me/foo"
        assert CharmUrl(name="foo").entity == "foo"


class TestChannel:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("stable", Channel(Risk.STABLE)),
            ("latest/edge", Channel(Risk.EDGE, track="latest")),
            ("2.0/candidate/hotfix", Channel(Risk.CANDIDATE, track="2.0", branch="hotfix")),
            ("beta/fix-1", Channel(Risk.BETA, branch="fix-1")),
        ],
    )
    def test_parse(self, text: str, expected: Channel) -> None:
        assert Channel.parse(text) == Ok(expected)
        assert str(expected) == text

    @pytest.mark.parametrize("text", ["", "latest/", "latest/nightly", "a/b/c/d"])
    def test_parse_invalid(self, text: str) -> None:
        assert isinstance(Channel.parse(text), Err)

    def test_risk_order(self) -> None:
        assert Risk.EDGE < Risk.BETA < Risk.CANDIDATE < Risk.STABLE

    def test_ordering_ignores_track(self) -> None:
        assert Channel(Risk.EDGE, track="2.0") < Channel(Risk.STABLE, track="1.0")
        assert Channel(Risk.BETA, track="a") <= Channel(Risk.BETA, track="b")
        assert sorted([Channel(Risk.STABLE), Channel(Risk.EDGE)])[0].risk is Risk.EDGE


class TestParseCharmRef:
    @pytest.mark.parametrize(
        "value", ["./build/foo", "../foo", "/tmp/foo", "~/charms/foo", "foo_ubuntu-22.04.charm"]
    )
    def test_paths_are_local(self, value: str) -> None:
        result = parse_charm_ref(value)
        assert result == Ok(LocalCharm(Path(value)))

    def test_store_reference(self) -> None:
        assert parse_charm_ref("cs:~me/foo-1") == Ok(
            CharmUrl(name="foo", store=Store.CHARMSTORE, namespace="me", revision=1)
        )
