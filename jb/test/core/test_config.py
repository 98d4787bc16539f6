"""Tests for jb.core.config module."""

from __future__ import annotations

from pathlib import Path

import pytest

from jb.core.charm_url import Channel, Risk, Store
from jb.core.config import (
    CONFIG_ENV_VAR,
    BuildConfig,
    ChannelsConfig,
    Config,
    DeployConfig,
    StoreConfig,
    find_config,
    load_config,
)
from jb.core.result import Err, Ok


class TestDefaults:
    def test_channels(self) -> None:
        config = ChannelsConfig()
        assert config.query == Channel(Risk.STABLE)
        assert config.publish == (Channel(Risk.EDGE),)

    def test_store(self) -> None:
        config = StoreConfig()
        assert config.default is Store.CHARMHUB
        assert config.charmhub_api == "https://api.charmhub.io"

    def test_build_and_deploy(self) -> None:
        assert BuildConfig().workers is None
        assert DeployConfig().wait == 60

    def test_frozen(self) -> None:
        config = Config()
        with pytest.raises(AttributeError):
            config.store = StoreConfig()  # type: ignore[misc]


class TestFromDict:
    def test_empty(self) -> None:
        assert Config.from_dict({}) == Ok(Config())

    def test_full(self) -> None:
        result = Config.from_dict(
            {
                "store": {"default": "charmstore", "timeout": 5},
                "channels": {"query": "candidate", "publish": ["edge", "1.0/beta"]},
                "build": {"workers": 2, "destructive_mode": True},
                "deploy": {"wait": 0},
            }
        )

        assert isinstance(result, Ok)
        config = result.value
        assert config.store.default is Store.CHARMSTORE
        assert config.store.timeout == 5.0
        assert config.channels.query == Channel(Risk.CANDIDATE)
        assert config.channels.publish == (Channel(Risk.EDGE), Channel(Risk.BETA, track="1.0"))
        assert config.build == BuildConfig(workers=2, destructive_mode=True)
        assert config.deploy.wait == 0

    def test_single_publish_channel(self) -> None:
        result = Config.from_dict({"channels": {"publish": "beta"}})
        assert isinstance(result, Ok)
        assert result.value.channels.publish == (Channel(Risk.BETA),)

    @pytest.mark.parametrize(
        "data",
        [
            {"store": {"default": "nowhere"}},
            {"channels": {"query": "nightly"}},
            {"channels": {"publish": ["edge", 3]}},
            {"build": {"workers": 0}},
        ],
    )
    def test_invalid(self, data: dict[str, object]) -> None:
        assert isinstance(Config.from_dict(data), Err)


class TestLoadConfig:
    def test_load(self, tmp_path: Path) -> None:
        path = tmp_path / "juju-bundle.toml"
        path.write_text('[channels]\npublish = ["candidate"]\n', encoding="utf-8")

        result = load_config(path)

        assert isinstance(result, Ok)
        assert result.value.channels.publish == (Channel(Risk.CANDIDATE),)

    def test_missing(self, tmp_path: Path) -> None:
        result = load_config(tmp_path / "nope.toml")
        assert isinstance(result, Err)
        assert "not found" in result.error.message

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "juju-bundle.toml"
        path.write_text("[channels\n", encoding="utf-8")
        result = load_config(path)
        assert isinstance(result, Err)
        assert result.error.path == path

    def test_invalid_value_carries_path(self, tmp_path: Path) -> None:
        path = tmp_path / "juju-bundle.toml"
        path.write_text("[build]\nworkers = -1\n", encoding="utf-8")
        result = load_config(path)
        assert isinstance(result, Err)
        assert result.error.path == path


class TestFindConfig:
    def test_explicit_wins(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "env.toml"))
        explicit = tmp_path / "explicit.toml"
        assert find_config(tmp_path / "bundle.yaml", explicit) == explicit

    def test_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "env.toml"))
        assert find_config(tmp_path / "bundle.yaml") == tmp_path / "env.toml"

    def test_beside_bundle(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        (tmp_path / "juju-bundle.toml").write_text("", encoding="utf-8")
        assert find_config(tmp_path / "bundle.yaml") == tmp_path / "juju-bundle.toml"

    def test_none(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        assert find_config(tmp_path / "bundle.yaml") is None
