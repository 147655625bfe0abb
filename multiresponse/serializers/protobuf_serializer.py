from typing import Any
from typing import Type

from google.protobuf import json_format
from google.protobuf.message import DecodeError
from google.protobuf.message import EncodeError
from google.protobuf.message import Message as PBMessage
from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from multiresponse.serializers.base import SerializationError
from multiresponse.serializers.base import Serializer
from multiresponse.serializers.base import describe_validation_error
from multiresponse.serializers.base import is_message_type
from multiresponse.serializers.base import type_adapter


def message_type_for(model_type: Type[Any]) -> Type[PBMessage]:
    """
    The generated protobuf class used for `model_type`.

    Either `model_type` is a protobuf message itself, or it names one in a
    `protobuf_message` class variable.
    """
    if is_message_type(model_type):
        return model_type
    message_type = getattr(model_type, "protobuf_message", None)
    if message_type is None:
        raise SerializationError(
            f"{getattr(model_type, '__name__', model_type)} "
            "has no protobuf message bound"
        )
    return message_type


class ProtobufSerializer(Serializer):
    """
    Protobuf ↔ bytes serializer.
    Models are mapped field by field onto their bound message class.
    """

    def serialize(self, obj: Any) -> bytes:
        if isinstance(obj, PBMessage):
            msg = obj
        else:
            message_type = message_type_for(type(obj))
            try:
                values = type_adapter(type(obj)).dump_python(obj, mode="json")
                msg = json_format.ParseDict(values, message_type())
            except (PydanticSerializationError, json_format.ParseError) as exc:
                raise SerializationError(str(exc)) from exc
        try:
            return msg.SerializeToString()
        except EncodeError as exc:
            raise SerializationError(str(exc)) from exc

    def deserialize(self, data: bytes, model_type: Type[Any]) -> Any:
        message_type = message_type_for(model_type)
        msg = message_type()
        try:
            msg.ParseFromString(data)
        except DecodeError as exc:
            raise SerializationError(str(exc)) from exc
        if model_type is message_type:
            return msg

        values = json_format.MessageToDict(
            msg,
            preserving_proto_field_name=True,
            always_print_fields_with_no_presence=True,
        )
        try:
            return type_adapter(model_type).validate_python(values)
        except ValidationError as exc:
            raise SerializationError(describe_validation_error(exc)) from exc
