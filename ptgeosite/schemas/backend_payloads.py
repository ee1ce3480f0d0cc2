"""
Backend Payload Schemas

Pydantic models for the JSON documents returned by the qBittorrent Web API
and the Transmission RPC interface. Only the fields pt-geosite reads are
declared; everything else in the payloads is ignored.
"""

from typing import List, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter


# ============================================================================
# qBittorrent Web API
# ============================================================================

class QBTorrentInfo(BaseModel):
    """Entry of GET /api/v2/torrents/info."""
    hash: str = Field(..., description="Torrent info hash")
    name: Optional[str] = Field(None, description="Torrent name")


class QBTorrentProperties(BaseModel):
    """Body of GET /api/v2/torrents/properties."""
    is_private: bool = Field(False, description="Private flag of the torrent")


class QBTracker(BaseModel):
    """Entry of GET /api/v2/torrents/trackers."""
    url: str = Field(..., description="Tracker URL, or a pseudo-entry like '** [DHT] **'")


QBTorrentList = TypeAdapter(List[QBTorrentInfo])
QBTrackerList = TypeAdapter(List[QBTracker])


# ============================================================================
# Transmission RPC
# ============================================================================

class TransmissionTracker(BaseModel):
    """Entry of a torrent's ``trackers`` field."""
    announce: Optional[str] = Field("", description="Announce URL; null entries are skipped by the classifier")
    url: Optional[str] = Field(None, description="Alias of announce sent by some versions")


class TransmissionTorrent(BaseModel):
    """Torrent as returned by torrent-get with fields id, name, trackers."""
    id: Optional[Union[int, str]] = Field(None, description="Session-local torrent ID")
    name: Optional[str] = Field(None, description="Torrent name")
    trackers: List[TransmissionTracker] = Field(default_factory=list)


class TorrentGetArguments(BaseModel):
    torrents: List[TransmissionTorrent] = Field(default_factory=list)


class TorrentGetResponse(BaseModel):
    """Envelope of a torrent-get RPC response."""
    result: str = Field("success", description="'success' or an error string")
    arguments: TorrentGetArguments = Field(default_factory=TorrentGetArguments)
