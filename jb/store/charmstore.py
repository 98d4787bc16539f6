"""Legacy Charm Store client (``cs:`` URLs).

Writes go through the ``charm`` CLI from charm-tools. Reads use the
charmstore v5 API. Charm Store entities always live under a namespace
(``cs:~containers/flannel``), so uploads without one are rejected up front.
"""

from __future__ import annotations

import re
import urllib.parse
from collections.abc import Mapping, Sequence
from pathlib import Path

from jb.core.charm_url import Channel, CharmUrl, Store
from jb.core.result import Err, Ok, Result
from jb.core.structured import as_obj_list, as_str_dict, get_int, get_path, get_str
from jb.platform.process import run
from jb.store.base import ChannelRelease, StoreError, StoreErrorKind, parse_revision, process_error
from jb.store.http import HttpClient, with_query

__all__ = ["CharmstoreClient"]

_PUSH_RE = re.compile(r"^url: (\S+)$", re.MULTILINE)
_ATTACH_RE = re.compile(r"uploaded revision (\d+)", re.MULTILINE)

_PUSH_TIMEOUT_SECONDS = 30 * 60.0


class CharmstoreClient:
    def __init__(
        self,
        http: HttpClient,
        cwd: Path,
        api_url: str = "https://api.jujucharms.com/charmstore/v5",
    ) -> None:
        self._http = http
        self._cwd = cwd
        self._api_url = api_url.rstrip("/")

    @property
    def store(self) -> Store:
        return Store.CHARMSTORE

    def _charm(self, args: list[str], kind: StoreErrorKind) -> Result[str, StoreError]:
        result = run(["charm", *args], cwd=self._cwd, timeout=_PUSH_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            return Err(process_error(kind, result.error))
        return result

    def _entity_url(self, url: CharmUrl) -> str:
        entity = url.entity if url.revision is None else f"{url.entity}-{url.revision}"
        return f"{self._api_url}/{entity}"

    def _pushed_url(self, output: str) -> Result[CharmUrl, StoreError]:
        m = _PUSH_RE.search(output)
        if m is None:
            return Err(StoreError(kind="upload", message=f"charm push printed no url: {output!r}"))
        parsed = CharmUrl.parse(m.group(1))
        if isinstance(parsed, Err) or parsed.value.revision is None:
            message = f"charm push printed a bad url: {m.group(1)}"
            return Err(StoreError(kind="upload", message=message))
        return Ok(parsed.value)

    def whoami(self) -> Result[str, StoreError]:
        result = self._charm(["whoami"], "auth")
        if isinstance(result, Err):
            return Err(
                StoreError(kind="auth", message=result.error.message, hint="Run: charm login")
            )
        return result

    def channel_release(
        self, url: CharmUrl, channel: Channel
    ) -> Result[ChannelRelease, StoreError]:
        query = urllib.parse.urlencode(
            [("include", "id-revision"), ("include", "resources"), ("channel", str(channel))]
        )
        reply = self._http.get_json(f"{self._entity_url(url.unpinned())}/meta/any?{query}")
        if isinstance(reply, Err):
            return Err(StoreError(kind="lookup", message=str(reply.error)))

        revision = get_path(reply.value, "Meta", "id-revision", "Revision")
        if not isinstance(revision, int):
            return Err(
                StoreError(
                    kind="lookup", message=f"No revision of {url.entity} released to {channel}"
                )
            )

        resources: dict[str, int] = {}
        for item in as_obj_list(get_path(reply.value, "Meta", "resources")) or []:
            table = as_str_dict(item) or {}
            name, res_rev = get_str(table, "Name"), get_int(table, "Revision")
            if name is not None and res_rev is not None:
                resources[name] = res_rev
        return Ok(ChannelRelease(revision=revision, resources=resources))

    def latest_revision(self, url: CharmUrl, channel: Channel) -> Result[int, StoreError]:
        return self.channel_release(url, channel).map(lambda release: release.revision)

    def upload(self, artifact: Path, url: CharmUrl) -> Result[CharmUrl, StoreError]:
        if url.namespace is None:
            return Err(
                StoreError(
                    kind="upload",
                    message=f"Charm Store uploads need a namespace: {url.name}",
                    hint="Use cs:~<namespace>/<name> in the bundle or pass --namespace",
                )
            )
        ref = str(url.in_store(self.store).unpinned())
        out = self._charm(["push", str(artifact), ref], "upload")
        if isinstance(out, Err):
            return out
        return self._pushed_url(out.value)

    def upload_resource(self, url: CharmUrl, name: str, descriptor: str) -> Result[int, StoreError]:
        ref = str(url.in_store(self.store).unpinned())
        out = self._charm(["attach", ref, f"{name}={descriptor}"], "upload")
        if isinstance(out, Err):
            return out
        return parse_revision(out.value, _ATTACH_RE, "upload")

    def release(
        self,
        url: CharmUrl,
        channels: Sequence[Channel],
        resources: Mapping[str, int],
    ) -> Result[None, StoreError]:
        if url.revision is None:
            return Err(StoreError(kind="release", message=f"Cannot release unpinned {url}"))
        resource_args = [
            arg for name, rev in resources.items() for arg in ("--resource", f"{name}-{rev}")
        ]
        ref = str(url.in_store(self.store))
        for channel in channels:
            args = ["release", ref, "--channel", str(channel), *resource_args]
            out = self._charm(args, "release")
            if isinstance(out, Err):
                return out
        return Ok(None)

    def fetch_bundle(self, url: CharmUrl, channel: Channel | None) -> Result[str, StoreError]:
        endpoint = with_query(
            f"{self._entity_url(url)}/archive/bundle.yaml",
            channel=str(channel) if channel is not None else None,
        )
        body = self._http.get_bytes(endpoint)
        if isinstance(body, Err):
            return Err(StoreError(kind="fetch", message=str(body.error)))
        try:
            return Ok(body.value.decode("utf-8"))
        except UnicodeDecodeError as e:
            return Err(StoreError(kind="fetch", message=f"Invalid bundle.yaml for {url}: {e}"))

    def upload_bundle(
        self, directory: Path, url: CharmUrl, channel: Channel
    ) -> Result[CharmUrl, StoreError]:
        pushed = self.upload(directory, url)
        if isinstance(pushed, Err):
            return pushed
        released = self.release(pushed.value, [channel], {})
        if isinstance(released, Err):
            return released
        return pushed
