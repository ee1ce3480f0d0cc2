"""
qBittorrent tracker-domain source.

Filter policy: only trackers of torrents whose ``is_private`` property is set
contribute hostnames.

Failure policy: login and the torrent list are fatal for the backend. The
per-torrent properties and trackers calls are not; a torrent whose metadata
cannot be fetched is skipped and the walk continues.
"""

import logging

from ..services.domain_set import DomainSet
from ..services.exceptions import BackendError
from ..services.qbittorrent_client import QBittorrentClient
from ..services.tracker_domains import tracker_domains
from .domain_source import DomainSource

logger = logging.getLogger(__name__)


class QBittorrentSource(DomainSource):
    """Collects tracker hostnames of private torrents from qBittorrent."""

    def _client(self) -> QBittorrentClient:
        username, password = self.endpoint.credentials
        return QBittorrentClient(
            host=self.endpoint.base_url,
            username=username,
            password=password,
            timeout=self.timeout,
            transport=self.transport,
        )

    async def collect_domains(self, domains: DomainSet) -> int:
        found = 0
        skipped = 0

        async with self._client() as qb:
            await qb.login()
            torrents = await qb.get_torrents()
            logger.info(f"qBittorrent reports {len(torrents)} torrents")

            for torrent in torrents:
                try:
                    properties = await qb.get_properties(torrent.hash)
                    if not properties.is_private:
                        continue
                    trackers = await qb.get_trackers(torrent.hash)
                except BackendError as e:
                    skipped += 1
                    logger.warning(f"Skipping torrent {torrent.hash[:8]}: {e}")
                    continue

                for host in tracker_domains(tracker.url for tracker in trackers):
                    domains.insert(host)
                    found += 1

        if skipped:
            logger.warning(f"{skipped} torrent(s) skipped after metadata errors")
        return found
