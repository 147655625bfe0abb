"""
Header resolvers: `Content-Type` picks the decoder for a request body,
`Accept` picks the encoder for a response body.
"""

from typing import List
from typing import NamedTuple
from typing import Optional
from typing import Tuple

from multiresponse.errors import MalformedHeaderValue
from multiresponse.errors import MissingHeader
from multiresponse.errors import UnsupportedFormat
from multiresponse.formats import Format
from multiresponse.log_config import logger
from multiresponse.serializers.registry import CodecRegistry
from multiresponse.serializers.registry import media_essence


class AcceptEntry(NamedTuple):
    media_range: str
    quality: float
    position: int


def _is_media_type(essence: str) -> bool:
    major, sep, minor = essence.partition("/")
    return bool(
        sep
        and major
        and minor
        and "/" not in minor
        and not any(c.isspace() for c in essence)
    )


def parse_media_type(value: str) -> str:
    """`type/subtype` of a header value, or MalformedHeaderValue."""
    essence = media_essence(value)
    if not _is_media_type(essence):
        raise MalformedHeaderValue(
            f"malformed media type {value!r}", header_value=value
        )
    return essence


def resolve_content_type(
    value: Optional[str], registry: CodecRegistry
) -> Format:
    """
    Format to decode a request body with. No sniffing: a missing header
    is an error.
    """
    if value is None:
        raise MissingHeader(
            "Content-Type header is required; supported: "
            + ", ".join(registry.supported_types())
        )
    essence = parse_media_type(value)
    fmt = registry.resolve_format(essence)
    if fmt is None:
        raise UnsupportedFormat(
            f"unsupported Content-Type {value!r}; supported: "
            + ", ".join(registry.supported_types()),
            header_value=value,
        )
    logger.debug("Content-Type %r → %s", value, fmt.value)
    return fmt


def parse_accept(value: str) -> Tuple[List[AcceptEntry], bool]:
    """
    Parse an Accept header into entries ordered by quality, highest
    first, header order kept on ties. Malformed entries are dropped;
    the flag reports whether every entry parsed.
    """
    entries: List[AcceptEntry] = []
    fully_parsed = True
    for position, raw in enumerate(value.split(",")):
        raw = raw.strip()
        if not raw:
            continue
        media_range, *params = raw.split(";")
        media_range = media_range.strip().lower()
        major, _, minor = media_range.partition("/")
        if not _is_media_type(media_range) or (major == "*" and minor != "*"):
            fully_parsed = False
            continue

        quality: Optional[float] = 1.0
        for param in params:
            name, _, val = param.partition("=")
            if name.strip().lower() != "q":
                continue
            try:
                quality = float(val.strip())
            except ValueError:
                quality = None
                break
            if not 0.0 <= quality <= 1.0:
                quality = None
                break
        if quality is None:
            fully_parsed = False
            continue
        entries.append(AcceptEntry(media_range, quality, position))

    # sort is stable, so equal weights stay in header order
    entries.sort(key=lambda e: -e.quality)
    return entries, fully_parsed


def _fallback(registry: CodecRegistry, content_type: Optional[str]) -> Format:
    if content_type and registry.config.mirror_content_type:
        fmt = registry.resolve_format(content_type)
        if fmt is not None:
            return fmt
    return registry.default_format


def _match(
    entry: AcceptEntry,
    registry: CodecRegistry,
    content_type: Optional[str],
) -> Optional[Format]:
    major, _, minor = entry.media_range.partition("/")
    if major == "*":
        return _fallback(registry, content_type)
    if minor == "*":
        return registry.resolve_type_wildcard(major)
    return registry.resolve_format(entry.media_range)


def resolve_accept(
    value: Optional[str],
    registry: CodecRegistry,
    content_type: Optional[str] = None,
) -> Format:
    """
    Format to encode a response body with.

    `content_type` is the request's own Content-Type; when mirroring is
    enabled it is preferred over the default format whenever the Accept
    header leaves the choice open.
    """
    if value is None or not value.strip():
        fmt = _fallback(registry, content_type)
        logger.debug("No Accept header → %s", fmt.value)
        return fmt

    entries, fully_parsed = parse_accept(value)
    for entry in entries:
        if entry.quality <= 0:
            continue
        fmt = _match(entry, registry, content_type)
        if fmt is not None:
            logger.debug("Accept %r → %s", value, fmt.value)
            return fmt

    if fully_parsed and entries:
        raise UnsupportedFormat(
            f"none of Accept {value!r} can be produced; available: "
            + ", ".join(registry.supported_types()),
            header_value=value,
        )

    fmt = _fallback(registry, content_type)
    logger.debug("Accept %r unusable → %s", value, fmt.value)
    return fmt
