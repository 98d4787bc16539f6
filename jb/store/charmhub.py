"""Charmhub client.

Writes go through ``charmcraft``; reads go through the public
``/v2/charms/info`` endpoint, which needs no credentials.
"""

from __future__ import annotations

import io
import re
import zipfile
from collections.abc import Mapping, Sequence
from pathlib import Path

from jb.core.charm_url import Channel, CharmUrl, Store
from jb.core.result import Err, Ok, Result
from jb.core.structured import as_obj_list, as_str_dict, get_int, get_path, get_str
from jb.platform.process import run
from jb.store.base import ChannelRelease, StoreError, StoreErrorKind, parse_revision, process_error
from jb.store.http import HttpClient, with_query

__all__ = ["CharmhubClient"]

_UPLOAD_RE = re.compile(r"Revision (\d+) of ", re.MULTILINE)
_RESOURCE_RE = re.compile(r"Revision (\d+) created of resource", re.MULTILINE)
_PACKED_RE = re.compile(r"Created '(\S+)'", re.MULTILINE)

_UPLOAD_TIMEOUT_SECONDS = 30 * 60.0


class CharmhubClient:
    def __init__(
        self, http: HttpClient, cwd: Path, api_url: str = "https://api.charmhub.io"
    ) -> None:
        self._http = http
        self._cwd = cwd
        self._api_url = api_url.rstrip("/")

    @property
    def store(self) -> Store:
        return Store.CHARMHUB

    def _charmcraft(
        self, args: list[str], kind: StoreErrorKind, *, cwd: Path | None = None
    ) -> Result[str, StoreError]:
        result = run(["charmcraft", *args], cwd=cwd or self._cwd, timeout=_UPLOAD_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            return Err(process_error(kind, result.error))
        return result

    def _info(
        self, url: CharmUrl, channel: Channel | None, fields: str
    ) -> Result[dict[str, object], StoreError]:
        endpoint = with_query(
            f"{self._api_url}/v2/charms/info/{url.name}",
            channel=str(channel) if channel is not None else None,
            revision=str(url.revision) if url.revision is not None else None,
            fields=fields,
        )
        result = self._http.get_json(endpoint)
        if isinstance(result, Err):
            return Err(StoreError(kind="lookup", message=str(result.error)))
        return Ok(result.value)

    def whoami(self) -> Result[str, StoreError]:
        result = self._charmcraft(["whoami"], "auth")
        if isinstance(result, Err):
            return Err(
                StoreError(
                    kind="auth",
                    message=result.error.message,
                    hint="Run: charmcraft login",
                )
            )
        return result

    def channel_release(
        self, url: CharmUrl, channel: Channel
    ) -> Result[ChannelRelease, StoreError]:
        info = self._info(
            url.unpinned(),
            channel,
            "default-release.revision.revision,default-release.resources.name,"
            "default-release.resources.revision",
        )
        if isinstance(info, Err):
            return info

        revision = get_path(info.value, "default-release", "revision", "revision")
        if not isinstance(revision, int):
            return Err(
                StoreError(
                    kind="lookup", message=f"No revision of {url.name} released to {channel}"
                )
            )

        resources: dict[str, int] = {}
        for item in as_obj_list(get_path(info.value, "default-release", "resources")) or []:
            table = as_str_dict(item) or {}
            name, res_rev = get_str(table, "name"), get_int(table, "revision")
            if name is not None and res_rev is not None:
                resources[name] = res_rev
        return Ok(ChannelRelease(revision=revision, resources=resources))

    def latest_revision(self, url: CharmUrl, channel: Channel) -> Result[int, StoreError]:
        return self.channel_release(url, channel).map(lambda release: release.revision)

    def upload(self, artifact: Path, url: CharmUrl) -> Result[CharmUrl, StoreError]:
        out = self._charmcraft(["upload", str(artifact), "--name", url.name], "upload")
        if isinstance(out, Err):
            return out
        revision = parse_revision(out.value, _UPLOAD_RE, "upload")
        if isinstance(revision, Err):
            return revision
        return Ok(CharmUrl(name=url.name, store=Store.CHARMHUB, revision=revision.value))

    def upload_resource(self, url: CharmUrl, name: str, descriptor: str) -> Result[int, StoreError]:
        if Path(descriptor).is_file():
            source = f"--filepath={descriptor}"
        else:
            source = f"--image={descriptor}"
        out = self._charmcraft(["upload-resource", url.name, name, source], "upload")
        if isinstance(out, Err):
            return out
        return parse_revision(out.value, _RESOURCE_RE, "upload")

    def release(
        self,
        url: CharmUrl,
        channels: Sequence[Channel],
        resources: Mapping[str, int],
    ) -> Result[None, StoreError]:
        if url.revision is None:
            return Err(StoreError(kind="release", message=f"Cannot release unpinned {url}"))
        args = [
            "release",
            url.name,
            f"--revision={url.revision}",
            *(f"--channel={channel}" for channel in channels),
            *(f"--resource={name}:{rev}" for name, rev in resources.items()),
        ]
        return self._charmcraft(args, "release").map(lambda _: None)

    def fetch_bundle(self, url: CharmUrl, channel: Channel | None) -> Result[str, StoreError]:
        info = self._info(url, channel, "default-release.revision.download.url")
        if isinstance(info, Err):
            return info
        download = get_path(info.value, "default-release", "revision", "download", "url")
        if not isinstance(download, str):
            return Err(StoreError(kind="fetch", message=f"No download available for {url}"))

        body = self._http.get_bytes(download)
        if isinstance(body, Err):
            return Err(StoreError(kind="fetch", message=str(body.error)))
        try:
            with zipfile.ZipFile(io.BytesIO(body.value)) as archive:
                return Ok(archive.read("bundle.yaml").decode("utf-8"))
        except (zipfile.BadZipFile, KeyError, UnicodeDecodeError) as e:
            return Err(StoreError(kind="fetch", message=f"Invalid bundle archive for {url}: {e}"))

    def upload_bundle(
        self, directory: Path, url: CharmUrl, channel: Channel
    ) -> Result[CharmUrl, StoreError]:
        packed = self._charmcraft(["pack"], "upload", cwd=directory)
        if isinstance(packed, Err):
            return packed
        m = _PACKED_RE.search(packed.value)
        if m is None:
            message = "charmcraft pack did not report an archive"
            return Err(StoreError(kind="upload", message=message))
        archive = directory / m.group(1)

        out = self._charmcraft(
            ["upload", str(archive), "--name", url.name, f"--release={channel}"],
            "upload",
            cwd=directory,
        )
        if isinstance(out, Err):
            return out
        return parse_revision(out.value, _UPLOAD_RE, "upload").map(url.with_revision)
