"""
GeoSite Encoder Service

Serializes the finalized tracker domains into a V2Ray/Xray ``GeoSiteList``
protobuf (the ``geosite.dat`` format). The message schema mirrors
``app/router/config.proto``::

    message Domain {
      enum Type { Plain = 0; Regex = 1; Domain = 2; Full = 3; }
      Type type = 1;
      string value = 2;
    }
    message GeoSite     { string country_code = 1; repeated Domain domain = 2; }
    message GeoSiteList { repeated GeoSite entry = 1; }

The descriptors are registered at import time in a private descriptor pool,
so no generated ``_pb2`` module or ``protoc`` run is needed and the messages
never clash with another copy of the schema loaded in the default pool.
"""

import logging
from enum import IntEnum
from typing import List, Sequence, Tuple

from google.protobuf import descriptor_pb2, descriptor_pool, message, message_factory

from .exceptions import EncodingFailure

logger = logging.getLogger(__name__)

PROTO_PACKAGE = "v2ray.core.app.router"

_Field = descriptor_pb2.FieldDescriptorProto


class DomainType(IntEnum):
    """Values of ``Domain.Type``."""
    PLAIN = 0
    REGEX = 1
    DOMAIN = 2
    FULL = 3


MATCH_TYPES = {
    "full": DomainType.FULL,
    "domain": DomainType.DOMAIN,
}


def _build_file_descriptor() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="ptgeosite/geosite.proto",
        package=PROTO_PACKAGE,
        syntax="proto3",
    )

    domain = file_proto.message_type.add(name="Domain")
    domain_type = domain.enum_type.add(name="Type")
    for member in DomainType:
        domain_type.value.add(name=member.name.capitalize(), number=member.value)
    domain.field.add(
        name="type", number=1, label=_Field.LABEL_OPTIONAL,
        type=_Field.TYPE_ENUM, type_name=f".{PROTO_PACKAGE}.Domain.Type",
    )
    domain.field.add(name="value", number=2, label=_Field.LABEL_OPTIONAL, type=_Field.TYPE_STRING)

    geosite = file_proto.message_type.add(name="GeoSite")
    geosite.field.add(name="country_code", number=1, label=_Field.LABEL_OPTIONAL, type=_Field.TYPE_STRING)
    geosite.field.add(
        name="domain", number=2, label=_Field.LABEL_REPEATED,
        type=_Field.TYPE_MESSAGE, type_name=f".{PROTO_PACKAGE}.Domain",
    )

    geosite_list = file_proto.message_type.add(name="GeoSiteList")
    geosite_list.field.add(
        name="entry", number=1, label=_Field.LABEL_REPEATED,
        type=_Field.TYPE_MESSAGE, type_name=f".{PROTO_PACKAGE}.GeoSite",
    )

    return file_proto


_POOL = descriptor_pool.DescriptorPool()
_POOL.AddSerializedFile(_build_file_descriptor().SerializeToString())

GeoSiteList = message_factory.GetMessageClass(_POOL.FindMessageTypeByName(f"{PROTO_PACKAGE}.GeoSiteList"))


def encode_geosite(label: str, domains: Sequence[str], match_type: str = "full") -> bytes:
    """
    Encode one labeled GeoSite entry.

    Args:
        label: GeoSite country code / category, e.g. "TRACKER"
        domains: Finalized hostnames, emitted in the given order
        match_type: "full" (exact match) or "domain" (domain and subdomains)

    Returns:
        Serialized GeoSiteList bytes

    Raises:
        EncodingFailure: Unknown match type or serialization error
    """
    if match_type not in MATCH_TYPES:
        raise EncodingFailure(f"unknown match type '{match_type}'")
    domain_type = int(MATCH_TYPES[match_type])

    try:
        geosite_list = GeoSiteList()
        entry = geosite_list.entry.add()
        entry.country_code = label
        for value in domains:
            entry.domain.add(type=domain_type, value=value)
        data = geosite_list.SerializeToString(deterministic=True)
    except (message.EncodeError, TypeError, ValueError) as e:
        raise EncodingFailure(f"failed to marshal GeoSiteList: {e}") from e

    logger.debug(f"Encoded {len(domains)} domains under '{label}' ({len(data)} bytes)")
    return data


def decode_geosite(data: bytes) -> List[Tuple[str, List[Tuple[DomainType, str]]]]:
    """
    Parse GeoSiteList bytes back into ``[(label, [(type, value), ...]), ...]``.

    Raises:
        EncodingFailure: If the bytes are not a valid GeoSiteList
    """
    geosite_list = GeoSiteList()
    try:
        geosite_list.ParseFromString(data)
    except message.DecodeError as e:
        raise EncodingFailure(f"invalid GeoSiteList data: {e}") from e

    return [
        (entry.country_code, [(DomainType(d.type), d.value) for d in entry.domain])
        for entry in geosite_list.entry
    ]
