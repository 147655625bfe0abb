from functools import lru_cache
from typing import Any
from typing import Protocol
from typing import Type
from typing import runtime_checkable

from google.protobuf.message import Message as PBMessage
from pydantic import TypeAdapter
from pydantic import ValidationError
from pydantic.errors import PydanticSchemaGenerationError


class SerializationError(Exception):
    """
    Raised by a serializer when bytes or values don't fit its format.
    The message is a single line, safe to show to clients.
    """


@runtime_checkable
class Serializer(Protocol):
    """
    Serializer protocol: must implement serialize() and deserialize().
    """

    def serialize(self, obj: Any) -> bytes:
        """
        Convert a Python object into bytes.
        """
        ...

    def deserialize(self, data: bytes, model_type: Type[Any]) -> Any:
        """
        Convert bytes back into an instance of `model_type`.
        """
        ...


def is_message_type(model_type: Any) -> bool:
    """True for a generated protobuf message class."""
    return isinstance(model_type, type) and issubclass(model_type, PBMessage)


@lru_cache(maxsize=256)
def _cached_adapter(model_type: Type[Any]) -> TypeAdapter:
    return TypeAdapter(model_type)


def type_adapter(model_type: Type[Any]) -> TypeAdapter:
    """
    Cached `TypeAdapter` for `model_type`. Types pydantic can't build a
    schema for raise SerializationError.
    """
    try:
        return _cached_adapter(model_type)
    except PydanticSchemaGenerationError as exc:
        name = getattr(model_type, "__name__", repr(model_type))
        raise SerializationError(f"unsupported type {name}") from exc
    except TypeError as exc:
        # unhashable annotations can't be cached
        raise SerializationError(str(exc)) from exc


def describe_validation_error(exc: ValidationError) -> str:
    """One-line summary of a pydantic ValidationError."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "<root>"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(parts) or str(exc)
