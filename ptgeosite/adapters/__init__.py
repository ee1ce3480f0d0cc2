"""
Backend Sources for pt-geosite

This package provides the abstraction layer over torrent-client backends.
Each source knows how to authenticate against one backend kind and which of
its torrents contribute tracker hostnames.

Available Sources:
    - DomainSource: Abstract base class defining the source contract
    - QBittorrentSource: qBittorrent Web API, private torrents only
    - TransmissionSource: Transmission RPC, all torrents

Architecture:
    Pipeline → SourceFactory → DomainSource (interface)
                                   ├── QBittorrentSource
                                   └── TransmissionSource
"""

from .domain_source import DomainSource
from .qbittorrent_source import QBittorrentSource
from .transmission_source import TransmissionSource
from .source_factory import SourceFactory

__all__ = [
    'DomainSource',
    'QBittorrentSource',
    'TransmissionSource',
    'SourceFactory',
]
