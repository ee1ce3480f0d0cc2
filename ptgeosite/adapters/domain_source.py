"""
DomainSource Abstract Base Class for pt-geosite

This module defines the contract every torrent-client backend implements so
the pipeline can collect tracker hostnames without knowing backend details.

Architecture Pattern:
    - Pipeline depends only on the DomainSource interface
    - Concrete sources (QBittorrentSource, TransmissionSource) implement it
    - SourceFactory maps a configured BackendEndpoint to its source

Each source owns its filter policy. The qBittorrent source only keeps
trackers of private torrents; the Transmission source keeps the trackers of
every torrent. The policies are not shared.

Usage Example:
    source = SourceFactory(timeout=30.0).get_source(endpoint)
    added = await source.collect_domains(domain_set)
"""

from abc import ABC, abstractmethod
from typing import Optional

import httpx

from ..config import BackendEndpoint
from ..services.domain_set import DomainSet


class DomainSource(ABC):
    """
    Abstract base class for tracker-domain sources.

    Implementations should:
        - Authenticate once per collect_domains() call
        - Raise the typed exceptions (AuthenticationFailure, TransportFailure,
          DecodeFailure) for failures that invalidate the whole backend
        - Log per-request detail at DEBUG and skipped items at WARNING

    Args:
        endpoint: Backend endpoint to read from
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (used by tests)
    """

    def __init__(
        self,
        endpoint: BackendEndpoint,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.endpoint = endpoint
        self.timeout = timeout
        self.transport = transport

    @abstractmethod
    async def collect_domains(self, domains: DomainSet) -> int:
        """
        Insert this backend's tracker hostnames into ``domains``.

        Args:
            domains: Shared DomainSet of the current run

        Returns:
            Number of accepted hostnames seen (before deduplication)

        Raises:
            BackendError: If authentication or the top-level list fetch fails
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.endpoint})"
