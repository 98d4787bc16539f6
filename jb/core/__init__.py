"""Core domain types and logic."""

from .bundle import Application, Bundle, BundleError
from .charm_url import Channel, CharmUrl, CharmUrlError, LocalCharm, Risk, Store
from .config import Config, ConfigError, load_config
from .errors import ErrorCode
from .result import Err, Ok, Result, collect, is_err, is_ok
from .selection import InvalidSelection, limit

__all__ = [
    # bundle
    "Application",
    "Bundle",
    "BundleError",
    # charm_url
    "Channel",
    "CharmUrl",
    "CharmUrlError",
    "LocalCharm",
    "Risk",
    "Store",
    # config
    "Config",
    "ConfigError",
    "load_config",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
    "collect",
    "is_err",
    "is_ok",
    # selection
    "InvalidSelection",
    "limit",
]
