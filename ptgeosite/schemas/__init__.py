"""
Schemas Package

Contains Pydantic models validating the payloads of the supported
torrent-client backends.
"""

from .backend_payloads import (
    QBTorrentInfo,
    QBTorrentProperties,
    QBTracker,
    QBTorrentList,
    QBTrackerList,
    TransmissionTracker,
    TransmissionTorrent,
    TorrentGetResponse,
)

__all__ = [
    # qBittorrent
    'QBTorrentInfo',
    'QBTorrentProperties',
    'QBTracker',
    'QBTorrentList',
    'QBTrackerList',
    # Transmission
    'TransmissionTracker',
    'TransmissionTorrent',
    'TorrentGetResponse',
]
