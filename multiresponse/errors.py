from typing import Dict
from typing import Optional

from multiresponse.formats import Format


class NegotiationError(Exception):
    """
    Base class for every failure of header parsing, codec selection
    or (de)serialization. Carries the HTTP status the adapter responds with.
    """

    status_code: int = 400

    def __init__(
        self,
        detail: str,
        *,
        header_value: Optional[str] = None,
        format: Optional[Format] = None,
    ) -> None:
        super().__init__(detail)
        self.detail = detail
        self.header_value = header_value
        self.format = format

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, str]:
        """Body of the error response."""
        return {"kind": self.kind, "detail": self.detail}


class MissingHeader(NegotiationError):
    status_code = 415


class UnsupportedFormat(NegotiationError):
    status_code = 415


class MalformedHeaderValue(NegotiationError):
    status_code = 400


class DecodeFailure(NegotiationError):
    status_code = 400


class EncodeFailure(NegotiationError):
    # the server picked the format, so a failure here is our fault
    status_code = 500
