from typing import Any
from typing import Optional
from typing import Type

from google.protobuf import json_format
from google.protobuf.message import Message as PBMessage
from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from multiresponse.serializers.base import SerializationError
from multiresponse.serializers.base import Serializer
from multiresponse.serializers.base import describe_validation_error
from multiresponse.serializers.base import is_message_type
from multiresponse.serializers.base import type_adapter


class JSONSerializer(Serializer):
    """
    JSON ↔ bytes serializer backed by pydantic.
    Protobuf messages use the proto3 JSON mapping instead.
    """

    def __init__(self, indent: Optional[int] = None) -> None:
        self._indent = indent

    def serialize(self, obj: Any) -> bytes:
        if isinstance(obj, PBMessage):
            text = json_format.MessageToJson(
                obj, preserving_proto_field_name=True, indent=self._indent
            )
            return text.encode("utf-8")
        # pydantic always emits utf-8
        try:
            return type_adapter(type(obj)).dump_json(obj, indent=self._indent)
        except PydanticSerializationError as exc:
            raise SerializationError(str(exc)) from exc

    def deserialize(self, data: bytes, model_type: Type[Any]) -> Any:
        if is_message_type(model_type):
            try:
                return json_format.Parse(data, model_type())
            except (json_format.ParseError, UnicodeDecodeError) as exc:
                raise SerializationError(str(exc)) from exc
        try:
            return type_adapter(model_type).validate_json(data)
        except ValidationError as exc:
            raise SerializationError(describe_validation_error(exc)) from exc
