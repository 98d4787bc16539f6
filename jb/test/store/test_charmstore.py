"""Tests for jb.store.charmstore module."""

from __future__ import annotations

import urllib.parse
from pathlib import Path

import pytest

import jb.store.charmstore as charmstore_module
from jb.core.charm_url import Channel, CharmUrl, Risk, Store
from jb.core.result import Err, Ok, Result
from jb.platform.process import ProcessError
from jb.store.base import ChannelRelease
from jb.store.charmstore import CharmstoreClient
from jb.store.http import MockHttpClient, with_query

API = "https://api.example/charmstore/v5"


class FakeCharmTool:
    """Replaces ``run`` with canned ``charm`` output keyed by subcommand."""

    def __init__(self) -> None:
        self.outputs: dict[str, str | ProcessError] = {}
        self.calls: list[list[str]] = []

    def __call__(
        self,
        cmd: list[str],
        cwd: Path,
        env: dict[str, str] | None = None,
        *,
        timeout: float | None = None,
    ) -> Result[str, ProcessError]:
        self.calls.append(cmd)
        out = self.outputs.get(cmd[1], "")
        if isinstance(out, ProcessError):
            return Err(out)
        return Ok(out)


@pytest.fixture
def charm_tool(monkeypatch: pytest.MonkeyPatch) -> FakeCharmTool:
    fake = FakeCharmTool()
    monkeypatch.setattr(charmstore_module, "run", fake)
    return fake


def _url(name: str = "flannel", revision: int | None = None) -> CharmUrl:
    return CharmUrl(name=name, store=Store.CHARMSTORE, namespace="containers", revision=revision)


def _client(http: MockHttpClient, tmp_path: Path) -> CharmstoreClient:
    return CharmstoreClient(http, tmp_path, api_url=API)


def _meta_url(channel: str) -> str:
    query = urllib.parse.urlencode(
        [("include", "id-revision"), ("include", "resources"), ("channel", channel)]
    )
    return f"{API}/~containers/flannel/meta/any?{query}"


class TestLookup:
    def test_channel_release(self, tmp_path: Path, charm_tool: FakeCharmTool) -> None:
        http = MockHttpClient()
        http.set_json(
            _meta_url("stable"),
            {
                "Meta": {
                    "id-revision": {"Revision": 42},
                    "resources": [{"Name": "flannel-tar", "Revision": 2}],
                }
            },
        )

        result = _client(http, tmp_path).channel_release(_url(revision=1), Channel(Risk.STABLE))

        assert result == Ok(ChannelRelease(revision=42, resources={"flannel-tar": 2}))

    def test_missing_revision(self, tmp_path: Path, charm_tool: FakeCharmTool) -> None:
        http = MockHttpClient()
        http.set_json(_meta_url("edge"), {"Meta": {}})
        result = _client(http, tmp_path).latest_revision(_url(), Channel(Risk.EDGE))
        assert isinstance(result, Err)
        assert "~containers/flannel" in result.error.message


class TestPublishing:
    def test_whoami_hint(self, tmp_path: Path, charm_tool: FakeCharmTool) -> None:
        charm_tool.outputs["whoami"] = ProcessError(("charm", "whoami"), 1, "", "not logged in")
        result = _client(MockHttpClient(), tmp_path).whoami()
        assert isinstance(result, Err)
        assert result.error.hint == "Run: charm login"

    def test_upload_needs_namespace(self, tmp_path: Path, charm_tool: FakeCharmTool) -> None:
        result = _client(MockHttpClient(), tmp_path).upload(
            tmp_path, CharmUrl(name="foo", store=Store.CHARMSTORE)
        )
        assert isinstance(result, Err)
        assert result.error.hint is not None
        assert charm_tool.calls == []

    def test_upload_reads_pushed_url(self, tmp_path: Path, charm_tool: FakeCharmTool) -> None:
        charm_tool.outputs["push"] = "url: cs:~containers/flannel-43\nchannel: unpublished\n"

        result = _client(MockHttpClient(), tmp_path).upload(tmp_path / "build", _url())

        assert result == Ok(_url(revision=43))
        assert charm_tool.calls[0] == [
            "charm",
            "push",
            str(tmp_path / "build"),
            "cs:~containers/flannel",
        ]

    def test_upload_bad_output(self, tmp_path: Path, charm_tool: FakeCharmTool) -> None:
        charm_tool.outputs["push"] = "url: cs:~containers/flannel\n"
        result = _client(MockHttpClient(), tmp_path).upload(tmp_path, _url())
        assert isinstance(result, Err)
        assert "bad url" in result.error.message

    def test_attach_resource(self, tmp_path: Path, charm_tool: FakeCharmTool) -> None:
        charm_tool.outputs["attach"] = "uploaded revision 5 of flannel-tar\n"
        client = _client(MockHttpClient(), tmp_path)
        assert client.upload_resource(_url(revision=43), "flannel-tar", "./f.tar") == Ok(5)
        assert charm_tool.calls[0][-1] == "flannel-tar=./f.tar"

    def test_release_once_per_channel(self, tmp_path: Path, charm_tool: FakeCharmTool) -> None:
        client = _client(MockHttpClient(), tmp_path)

        result = client.release(
            _url(revision=43), [Channel(Risk.EDGE), Channel(Risk.BETA)], {"flannel-tar": 5}
        )

        assert result == Ok(None)
        assert charm_tool.calls == [
            [
                "charm",
                "release",
                "cs:~containers/flannel-43",
                "--channel",
                "edge",
                "--resource",
                "flannel-tar-5",
            ],
            [
                "charm",
                "release",
                "cs:~containers/flannel-43",
                "--channel",
                "beta",
                "--resource",
                "flannel-tar-5",
            ],
        ]

    def test_release_stops_on_first_failure(
        self, tmp_path: Path, charm_tool: FakeCharmTool
    ) -> None:
        charm_tool.outputs["release"] = ProcessError(("charm", "release"), 1, "", "denied")
        result = _client(MockHttpClient(), tmp_path).release(
            _url(revision=1), [Channel(Risk.EDGE), Channel(Risk.BETA)], {}
        )
        assert isinstance(result, Err)
        assert result.error.kind == "release"
        assert len(charm_tool.calls) == 1


def test_fetch_bundle(tmp_path: Path, charm_tool: FakeCharmTool) -> None:
    http = MockHttpClient()
    bundle = CharmUrl(name="kubeflow", store=Store.CHARMSTORE, namespace="kubeflow-charmers")
    http.set_bytes(
        with_query(f"{API}/~kubeflow-charmers/kubeflow/archive/bundle.yaml", channel="edge"),
        b"applications: {}\n",
    )

    result = _client(http, tmp_path).fetch_bundle(bundle, Channel(Risk.EDGE))

    assert result == Ok("applications: {}\n")
