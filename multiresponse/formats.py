"""
Wire formats known to the negotiation core and their MIME identifiers.
"""

from enum import Enum
from typing import Dict
from typing import Final
from typing import Tuple

MIMETYPE_APPLICATION_JSON: Final[str] = "application/json"
MIMETYPE_APPLICATION_PROTOBUF: Final[str] = "application/protobuf"
MIMETYPE_APPLICATION_X_PROTOBUF: Final[str] = "application/x-protobuf"
MIMETYPE_APPLICATION_XML: Final[str] = "application/xml"
MIMETYPE_TEXT_XML: Final[str] = "text/xml"


class Format(str, Enum):
    JSON = "json"
    PROTOBUF = "protobuf"
    XML = "xml"


# First enabled entry is the default response format.
PRIORITY: Final[Tuple[Format, ...]] = (
    Format.JSON,
    Format.PROTOBUF,
    Format.XML,
)

CANONICAL_MIME: Final[Dict[Format, str]] = {
    Format.JSON: MIMETYPE_APPLICATION_JSON,
    Format.PROTOBUF: MIMETYPE_APPLICATION_PROTOBUF,
    Format.XML: MIMETYPE_APPLICATION_XML,
}

# Extra identifiers accepted on inbound matching only.
ALIASES: Final[Dict[Format, Tuple[str, ...]]] = {
    Format.JSON: (),
    Format.PROTOBUF: (MIMETYPE_APPLICATION_X_PROTOBUF,),
    Format.XML: (MIMETYPE_TEXT_XML,),
}


def identifiers(fmt: Format) -> Tuple[str, ...]:
    """Canonical MIME first, then aliases."""
    return (CANONICAL_MIME[fmt],) + ALIASES[fmt]
