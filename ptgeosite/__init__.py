"""
pt-geosite

Collects the tracker hostnames of torrents managed by qBittorrent and
Transmission and writes them as a V2Ray/Xray GeoSite list, so routing rules
can match private tracker traffic by domain.
"""

__version__ = "1.0.0"
