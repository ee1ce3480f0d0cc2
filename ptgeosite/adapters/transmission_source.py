"""
Transmission tracker-domain source.

Filter policy: every torrent contributes, private or not. The torrent-get
call does not request the private flag, so no privacy filtering happens here
(unlike the qBittorrent source).

Failure policy: the single RPC call is the top-level fetch; any failure of
it is fatal for the backend.
"""

import logging

from ..services.domain_set import DomainSet
from ..services.tracker_domains import tracker_domains
from ..services.transmission_client import TransmissionClient
from .domain_source import DomainSource

logger = logging.getLogger(__name__)


class TransmissionSource(DomainSource):
    """Collects tracker hostnames of all torrents from Transmission."""

    def _client(self) -> TransmissionClient:
        username, password = self.endpoint.credentials
        return TransmissionClient(
            host=self.endpoint.base_url,
            username=username,
            password=password,
            timeout=self.timeout,
            transport=self.transport,
        )

    async def collect_domains(self, domains: DomainSet) -> int:
        found = 0

        async with self._client() as tr:
            torrents = await tr.get_torrents()
            logger.info(f"Transmission reports {len(torrents)} torrents")

            for torrent in torrents:
                for host in tracker_domains(tracker.announce for tracker in torrent.trackers):
                    domains.insert(host)
                    found += 1

        return found
