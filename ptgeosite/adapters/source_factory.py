"""
SourceFactory for pt-geosite

Maps a configured BackendEndpoint to the DomainSource implementation for its
backend kind.

Usage:
    factory = SourceFactory(timeout=30.0)
    await factory.get_source(endpoint).collect_domains(domain_set)
"""

from types import MappingProxyType
from typing import Mapping, Optional, Type

import httpx

from ..config import BackendEndpoint, BackendKind
from ..services.exceptions import ConfigurationError
from .domain_source import DomainSource
from .qbittorrent_source import QBittorrentSource
from .transmission_source import TransmissionSource


class SourceFactory:
    """
    Creates the DomainSource for each backend kind.

    Example:
        >>> factory = SourceFactory(timeout=10.0)
        >>> source = factory.get_source(endpoint)
    """

    # Read-only: one fixed source per kind for every factory instance
    _REGISTRY: Mapping[BackendKind, Type[DomainSource]] = MappingProxyType({
        BackendKind.QBITTORRENT: QBittorrentSource,
        BackendKind.TRANSMISSION: TransmissionSource,
    })

    def __init__(self, timeout: float = 30.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self.transport = transport

    def get_source(self, endpoint: BackendEndpoint) -> DomainSource:
        """
        Create the source for ``endpoint``.

        Raises:
            ConfigurationError: If no source exists for the endpoint kind
        """
        source_class = self._REGISTRY.get(endpoint.kind)
        if source_class is None:
            raise ConfigurationError(f"no source registered for backend kind '{endpoint.kind}'")
        return source_class(endpoint, timeout=self.timeout, transport=self.transport)
