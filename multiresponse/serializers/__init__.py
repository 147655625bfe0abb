from .base import SerializationError
from .base import Serializer
from .json_serializer import JSONSerializer
from .protobuf_serializer import ProtobufSerializer
from .registry import CodecRegistry
from .registry import registry
from .xml_serializer import XMLSerializer

__all__ = [
    "Serializer",
    "SerializationError",
    "JSONSerializer",
    "ProtobufSerializer",
    "XMLSerializer",
    "CodecRegistry",
    "registry",
]
