"""
Configuration Management for pt-geosite

This module centralizes runtime configuration. Defaults come from environment
variables (``Config``), and each run is described by an explicit, immutable
``RunConfig`` record that the CLI builds once and hands to the pipeline.

Backend endpoints use the ``user:password@host:port`` notation, for example::

    admin:adminadmin@192.168.1.1:8080
    user:password@192.168.1.1:9091
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from .services.exceptions import ConfigurationError


class BackendKind(str, Enum):
    """Supported torrent-client backends."""
    QBITTORRENT = "qbittorrent"
    TRANSMISSION = "transmission"


DEFAULT_PORTS = {
    BackendKind.QBITTORRENT: 8080,
    BackendKind.TRANSMISSION: 9091,
}

CATEGORIES = ("PT", "TRACKER")
MATCH_TYPES = ("full", "domain")


def _split_env_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _env_float(name: str, default: str) -> float:
    # Unparsable values read as 0, which validate() rejects
    try:
        return float(os.getenv(name, default))
    except ValueError:
        return 0.0


class Config:
    """
    Environment-driven defaults.

    Every value can be overridden on the command line; these only decide what
    happens when a flag is not given.
    """

    # =============================================================================
    # OUTPUT
    # =============================================================================
    DAT_PATH = os.getenv("PTGEOSITE_DAT_PATH", "/usr/share/v2ray/pt.dat")
    CATEGORY = os.getenv("PTGEOSITE_CATEGORY", "TRACKER").upper()
    MATCH_TYPE = os.getenv("PTGEOSITE_MATCH_TYPE", "full").lower()

    # =============================================================================
    # BACKENDS
    # =============================================================================
    # Comma-separated endpoint specs, appended to the ones given as flags
    QB_ENDPOINTS: List[str] = _split_env_list(os.getenv("PTGEOSITE_QB", ""))
    TR_ENDPOINTS: List[str] = _split_env_list(os.getenv("PTGEOSITE_TR", ""))

    # =============================================================================
    # REQUEST TIMEOUTS (seconds)
    # =============================================================================
    HTTP_TIMEOUT = _env_float("PTGEOSITE_HTTP_TIMEOUT", "30")

    # =============================================================================
    # LOGGING
    # =============================================================================
    DEBUG = os.getenv("DEBUG", "false").lower() == "true"
    JSON_LOGS = os.getenv("PTGEOSITE_JSON_LOGS", "false").lower() == "true"

    @classmethod
    def validate(cls) -> bool:
        """
        Validate the environment defaults.

        Returns:
            True if configuration is valid, False otherwise
        """
        if not cls.DAT_PATH:
            return False

        if cls.CATEGORY not in CATEGORIES or cls.MATCH_TYPE not in MATCH_TYPES:
            return False

        return cls.HTTP_TIMEOUT > 0

    @classmethod
    def get_summary(cls) -> dict:
        """
        Get configuration summary for logging/debugging.

        Returns:
            Dictionary without credentials
        """
        return {
            "dat_path": cls.DAT_PATH,
            "category": cls.CATEGORY,
            "match_type": cls.MATCH_TYPE,
            "http_timeout": cls.HTTP_TIMEOUT,
            "qbittorrent_endpoints": len(cls.QB_ENDPOINTS),
            "transmission_endpoints": len(cls.TR_ENDPOINTS),
            "debug": cls.DEBUG,
            "json_logs": cls.JSON_LOGS,
        }


@dataclass(frozen=True)
class BackendEndpoint:
    """One configured torrent-client instance."""

    kind: BackendKind
    host: str
    port: int
    username: str = ""
    password: str = field(default="", repr=False)
    scheme: str = "http"

    @property
    def base_url(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"{self.scheme}://{host}:{self.port}"

    @property
    def credentials(self) -> Tuple[str, str]:
        return self.username, self.password

    def __str__(self) -> str:
        user = f"{self.username}@" if self.username else ""
        return f"{self.kind.value}://{user}{self.host}:{self.port}"


def parse_endpoint(kind: BackendKind, spec: str) -> BackendEndpoint:
    """
    Parse ``user:password@host:port`` into a BackendEndpoint.

    The last ``@`` separates credentials from the address, so passwords may
    contain ``@``. The first ``:`` of the credentials separates user from
    password. The port falls back to the backend's default when omitted.

    Args:
        kind: Backend kind the spec belongs to
        spec: Endpoint specification string

    Returns:
        Parsed BackendEndpoint

    Raises:
        ConfigurationError: If the spec cannot be parsed
    """
    creds, sep, address = spec.strip().rpartition("@")
    if not sep or not address:
        raise ConfigurationError(f"invalid {kind.value} endpoint '{spec}': expected user:password@host:port")

    username, colon, password = creds.partition(":")
    if not colon:
        raise ConfigurationError(f"invalid {kind.value} credentials: expected user:password")

    scheme = "http"
    for prefix in ("http://", "https://"):
        if address.startswith(prefix):
            scheme = prefix[:-3]
            address = address[len(prefix):]
    address = address.rstrip("/")

    if address.startswith("["):
        # Bracketed IPv6 literal
        host, _, rest = address[1:].partition("]")
        port_str = rest[1:] if rest.startswith(":") else ""
    elif address.count(":") == 1:
        host, _, port_str = address.partition(":")
    else:
        host, port_str = address, ""

    if not host:
        raise ConfigurationError(f"invalid {kind.value} endpoint '{address}': empty host")

    if port_str:
        try:
            port = int(port_str)
        except ValueError:
            raise ConfigurationError(f"invalid {kind.value} port '{port_str}'") from None
        if port < 1 or port > 65535:
            raise ConfigurationError(f"{kind.value} port out of range: {port}")
    else:
        port = DEFAULT_PORTS[kind]

    return BackendEndpoint(
        kind=kind,
        host=host,
        port=port,
        username=username,
        password=password,
        scheme=scheme,
    )


@dataclass(frozen=True)
class RunConfig:
    """Everything one run needs, built once at startup."""

    endpoints: Tuple[BackendEndpoint, ...]
    dat_path: str = Config.DAT_PATH
    category: str = Config.CATEGORY
    match_type: str = Config.MATCH_TYPE
    http_timeout: float = Config.HTTP_TIMEOUT

    def __post_init__(self):
        if not self.endpoints:
            raise ConfigurationError("at least one qBittorrent or Transmission endpoint must be specified")
        if self.category not in CATEGORIES:
            raise ConfigurationError(f"unknown category '{self.category}', expected one of {', '.join(CATEGORIES)}")
        if self.match_type not in MATCH_TYPES:
            raise ConfigurationError(f"unknown match type '{self.match_type}'")
        if not self.dat_path:
            raise ConfigurationError("output path is empty")


def build_run_config(
    qb_specs: Sequence[str] = (),
    tr_specs: Sequence[str] = (),
    dat_path: Optional[str] = None,
    category: Optional[str] = None,
    match_type: Optional[str] = None,
    http_timeout: Optional[float] = None,
) -> RunConfig:
    """
    Build a RunConfig from endpoint specs, falling back to Config defaults.

    qBittorrent endpoints come first, then Transmission ones, each group in
    the order given. That order is the order backends are visited in.
    """
    endpoints = [parse_endpoint(BackendKind.QBITTORRENT, spec) for spec in qb_specs]
    endpoints += [parse_endpoint(BackendKind.TRANSMISSION, spec) for spec in tr_specs]

    return RunConfig(
        endpoints=tuple(endpoints),
        dat_path=dat_path or Config.DAT_PATH,
        category=(category or Config.CATEGORY).upper(),
        match_type=(match_type or Config.MATCH_TYPE).lower(),
        http_timeout=http_timeout if http_timeout is not None else Config.HTTP_TIMEOUT,
    )

