from typing import Any
from typing import Generic
from typing import NamedTuple
from typing import Optional
from typing import Type
from typing import TypeVar
from typing import Union

from multiresponse.errors import DecodeFailure
from multiresponse.errors import EncodeFailure
from multiresponse.errors import NegotiationError
from multiresponse.formats import Format
from multiresponse.headers import resolve_accept
from multiresponse.headers import resolve_content_type
from multiresponse.log_config import logger
from multiresponse.log_config import negotiation_context
from multiresponse.serializers.base import SerializationError
from multiresponse.serializers.registry import CodecRegistry
from multiresponse.serializers.registry import registry as default_registry

# Type variable for the logical payload type
T = TypeVar("T")


class Payload(Generic[T]):
    """
    Owns one value of the logical payload type for a single request or
    response. Attribute access falls through to the wrapped value.

    Returned from a negotiated endpoint, it is encoded in whatever
    format the client's Accept header asks for.
    """

    __slots__ = ("_value",)

    def __init__(self, value: T) -> None:
        self._value = value

    @property
    def value(self) -> T:
        return self._value

    def into_inner(self) -> T:
        return self._value

    def __getattr__(self, name: str) -> Any:
        # only reached for names Payload itself lacks; protocol hooks
        # such as __deepcopy__ must not come from the wrapped value
        if name == "_value" or name.startswith("__"):
            raise AttributeError(name)
        return getattr(self._value, name)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Payload):
            return bool(self._value == other._value)
        return NotImplemented

    def __repr__(self) -> str:
        return f"Payload({self._value!r})"


class EncodedBody(NamedTuple):
    body: bytes
    media_type: str
    format: Format


def _log_failure(exc: NegotiationError) -> None:
    extra = negotiation_context(
        exc.kind,
        exc.status_code,
        format=exc.format.value if exc.format else None,
        header_value=exc.header_value,
    )
    if exc.status_code >= 500:
        logger.error(
            "Negotiation failed: %s: %s", exc.kind, exc.detail, extra=extra
        )
    else:
        logger.info(
            "Negotiation rejected: %s: %s", exc.kind, exc.detail, extra=extra
        )


def decode_request(
    model_type: Type[T],
    content_type: Optional[str],
    body: bytes,
    registry: Optional[CodecRegistry] = None,
) -> Payload[T]:
    """
    Decode a buffered request body into `model_type` using the format
    named by `content_type`.
    """
    reg = registry or default_registry
    try:
        fmt = resolve_content_type(content_type, reg)
        try:
            value = reg.get(fmt).deserialize(body, model_type)
        except SerializationError as exc:
            raise DecodeFailure(
                f"invalid {fmt.value} body for "
                f"{getattr(model_type, '__name__', model_type)}: {exc}",
                header_value=content_type,
                format=fmt,
            ) from exc
    except NegotiationError as exc:
        _log_failure(exc)
        raise
    logger.debug("Decoded %d bytes of %s", len(body), fmt.value)
    return Payload(value)


def encode_response(
    payload: Union[Payload[T], T],
    accept: Optional[str],
    content_type: Optional[str] = None,
    registry: Optional[CodecRegistry] = None,
) -> EncodedBody:
    """
    Encode a payload in the format picked from `accept`.

    `content_type` is the request's Content-Type, consulted only when the
    Accept header leaves the choice open.
    """
    reg = registry or default_registry
    value = payload.value if isinstance(payload, Payload) else payload
    try:
        fmt = resolve_accept(accept, reg, content_type)
        try:
            body = reg.get(fmt).serialize(value)
        except SerializationError as exc:
            raise EncodeFailure(
                f"cannot encode {type(value).__name__} as {fmt.value}: {exc}",
                header_value=accept,
                format=fmt,
            ) from exc
    except NegotiationError as exc:
        _log_failure(exc)
        raise
    logger.debug("Encoded %d bytes of %s", len(body), fmt.value)
    return EncodedBody(body, reg.canonical_mime(fmt), fmt)
