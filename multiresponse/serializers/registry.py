from typing import Dict
from typing import List
from typing import Optional
from typing import Tuple

from multiresponse.config import NegotiationConfig
from multiresponse.errors import UnsupportedFormat
from multiresponse.formats import CANONICAL_MIME
from multiresponse.formats import Format
from multiresponse.formats import identifiers
from multiresponse.log_config import logger

from .base import Serializer
from .json_serializer import JSONSerializer
from .protobuf_serializer import ProtobufSerializer
from .xml_serializer import XMLSerializer


def _build_serializer(fmt: Format, config: NegotiationConfig) -> Serializer:
    if fmt is Format.JSON:
        return JSONSerializer(indent=config.json_indent)
    if fmt is Format.PROTOBUF:
        return ProtobufSerializer()
    return XMLSerializer()


def media_essence(value: str) -> str:
    """`type/subtype` of a media type, lowercased, parameters stripped."""
    return value.split(";", 1)[0].strip().lower()


class CodecRegistry:
    """
    The enabled formats and their serializers, fixed at construction.
    Read-only afterwards, so it can be shared across requests freely.
    """

    def __init__(self, config: Optional[NegotiationConfig] = None) -> None:
        self._config = config or NegotiationConfig()
        self._formats: Tuple[Format, ...] = tuple(
            self._config.enabled_formats()
        )
        if not self._formats:
            raise ValueError("at least one format must be enabled")
        self._map: Dict[Format, Serializer] = {
            fmt: _build_serializer(fmt, self._config) for fmt in self._formats
        }
        logger.info(
            "Codec registry ready: %s (default %s)",
            ", ".join(f.value for f in self._formats),
            self.default_format.value,
        )

    @property
    def config(self) -> NegotiationConfig:
        return self._config

    @property
    def enabled_formats(self) -> Tuple[Format, ...]:
        return self._formats

    @property
    def default_format(self) -> Format:
        return self._config.default_format or self._formats[0]

    def supported_types(self) -> List[str]:
        return [CANONICAL_MIME[f] for f in self._formats]

    def resolve_format(self, mime: str) -> Optional[Format]:
        """
        Format for a MIME string, or None. Case-insensitive, ignores
        parameters, accepts an exact or prefix match on any identifier.
        """
        essence = media_essence(mime)
        if not essence:
            return None
        for fmt in self._formats:
            for ident in identifiers(fmt):
                if essence.startswith(ident):
                    return fmt
        return None

    def resolve_type_wildcard(self, major: str) -> Optional[Format]:
        """First enabled format with an identifier under `major/*`."""
        major = major.strip().lower()
        for fmt in self._formats:
            for ident in identifiers(fmt):
                if ident.split("/", 1)[0] == major:
                    return fmt
        return None

    def is_registered(self, mime: str) -> bool:
        return self.resolve_format(mime) is not None

    def canonical_mime(self, fmt: Format) -> str:
        if fmt not in self._map:
            raise UnsupportedFormat(
                f"format {fmt.value!r} is not enabled", format=fmt
            )
        return CANONICAL_MIME[fmt]

    def get(self, fmt: Format) -> Serializer:
        if fmt not in self._map:
            raise UnsupportedFormat(
                f"format {fmt.value!r} is not enabled", format=fmt
            )
        return self._map[fmt]


registry = CodecRegistry(NegotiationConfig.from_env())
