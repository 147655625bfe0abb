from .config import NegotiationConfig
from .errors import DecodeFailure
from .errors import EncodeFailure
from .errors import MalformedHeaderValue
from .errors import MissingHeader
from .errors import NegotiationError
from .errors import UnsupportedFormat
from .fastapi_utils import NegotiatingRoute
from .fastapi_utils import install_negotiation
from .fastapi_utils import negotiated
from .fastapi_utils import payload_body
from .fastapi_utils import respond
from .formats import Format
from .headers import parse_accept
from .headers import resolve_accept
from .headers import resolve_content_type
from .payload import EncodedBody
from .payload import Payload
from .payload import decode_request
from .payload import encode_response
from .serializers.registry import CodecRegistry
from .serializers.registry import registry

__all__ = [
    "Format",
    "NegotiationConfig",
    "CodecRegistry",
    "registry",
    "Payload",
    "EncodedBody",
    "decode_request",
    "encode_response",
    "resolve_content_type",
    "resolve_accept",
    "parse_accept",
    "NegotiationError",
    "MissingHeader",
    "UnsupportedFormat",
    "MalformedHeaderValue",
    "DecodeFailure",
    "EncodeFailure",
    "payload_body",
    "respond",
    "negotiated",
    "NegotiatingRoute",
    "install_negotiation",
]
