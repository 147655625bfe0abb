import xml.etree.ElementTree as ET
from typing import Any
from typing import Dict
from typing import List
from typing import NamedTuple
from typing import Optional
from typing import Type
from typing import get_args
from typing import get_origin

from google.protobuf import json_format
from google.protobuf.descriptor import Descriptor
from google.protobuf.descriptor import FieldDescriptor
from google.protobuf.message import Message as PBMessage
from pydantic import BaseModel
from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from multiresponse.serializers.base import SerializationError
from multiresponse.serializers.base import Serializer
from multiresponse.serializers.base import describe_validation_error
from multiresponse.serializers.base import is_message_type
from multiresponse.serializers.base import type_adapter

_SEQUENCE_ORIGINS = (list, tuple, set, frozenset)

# marks an element standing for None
NIL_ATTR = "nil"


class _Shape(NamedTuple):
    is_list: bool
    nested: Optional[Type[BaseModel]]
    # absent element means the default, not an empty sequence
    default_none: bool


def _is_model(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, BaseModel)


def _unwrap(annotation: Any) -> _Shape:
    """
    Shape of a field annotation, looking through Optional/Union/Annotated.
    """
    is_list = False
    nested: Optional[Type[BaseModel]] = None
    stack = [annotation]
    while stack:
        tp = stack.pop()
        origin = get_origin(tp)
        if origin in _SEQUENCE_ORIGINS:
            is_list = True
            stack.extend(get_args(tp))
        elif origin is not None:
            stack.extend(get_args(tp))
        elif _is_model(tp):
            nested = tp
    return _Shape(is_list, nested, False)


def _field_shapes(model_type: Any) -> Dict[str, _Shape]:
    if not _is_model(model_type):
        return {}
    shapes = {}
    for name, field in model_type.model_fields.items():
        shape = _unwrap(field.annotation)
        default_none = not field.is_required() and field.default is None
        shapes[name] = shape._replace(default_none=default_none)
    return shapes


def _is_nil(elem: ET.Element) -> bool:
    return elem.get(NIL_ATTR) == "true"


def _text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _build(tag: str, value: Any) -> ET.Element:
    elem = ET.Element(tag)
    if value is None:
        elem.set(NIL_ATTR, "true")
    elif isinstance(value, dict):
        for key, item in value.items():
            if item is None:
                continue
            items = item if isinstance(item, list) else [item]
            for entry in items:
                elem.append(_build(str(key), entry))
    else:
        elem.text = _text(value)
    return elem


def _element_to_dict(elem: ET.Element, model_type: Any) -> Dict[str, Any]:
    shapes = _field_shapes(model_type)
    grouped: Dict[str, List[Any]] = {}
    for child in elem:
        shape = shapes.get(child.tag)
        nested = shape.nested if shape else None
        if _is_nil(child):
            value: Any = None
        elif len(child) or nested is not None:
            value = _element_to_dict(child, nested)
        else:
            value = child.text or ""
        grouped.setdefault(child.tag, []).append(value)

    out: Dict[str, Any] = {}
    for name, shape in shapes.items():
        if shape.is_list and name not in grouped and not shape.default_none:
            out[name] = []
    for tag, values in grouped.items():
        shape = shapes.get(tag)
        is_list = shape.is_list if shape else False
        out[tag] = values if is_list or len(values) > 1 else values[0]
    return out


def _is_well_known(descriptor: Descriptor) -> bool:
    return descriptor.full_name.startswith("google.protobuf.")


def _is_map(field: FieldDescriptor) -> bool:
    return (
        field.message_type is not None
        and field.message_type.GetOptions().map_entry
    )


def _message_values(
    elem: ET.Element, descriptor: Optional[Descriptor]
) -> Dict[str, Any]:
    """
    Dict for `json_format.ParseDict` from an element. Without a
    descriptor (Struct and friends) every leaf stays a string.
    """
    if descriptor is not None and _is_well_known(descriptor):
        descriptor = None
    grouped: Dict[str, List[Any]] = {}
    repeated = set()
    for child in elem:
        field = descriptor.fields_by_name.get(child.tag) if descriptor else None
        if field is not None and _is_map(field):
            value: Any = _message_values(child, None)
        elif _is_nil(child):
            value = None
        elif (
            field is not None
            and field.message_type is not None
            and not _is_well_known(field.message_type)
        ):
            value = _message_values(child, field.message_type)
        elif len(child):
            value = _message_values(child, None)
        elif field is not None and field.type == FieldDescriptor.TYPE_BOOL:
            text = (child.text or "").strip()
            value = {"true": True, "false": False}.get(text, text)
        else:
            value = child.text or ""
        if (
            field is not None
            and field.label == FieldDescriptor.LABEL_REPEATED
            and not _is_map(field)
        ):
            repeated.add(child.tag)
        grouped.setdefault(child.tag, []).append(value)
    return {
        tag: values if tag in repeated or len(values) > 1 else values[0]
        for tag, values in grouped.items()
    }


class XMLSerializer(Serializer):
    """
    XML ↔ bytes serializer.

    The root element is named after the model class (or its `xml_root`
    class variable); each field becomes a child element, sequences repeat
    the element, nested models nest. A None inside a sequence is an empty
    element carrying nil="true"; an empty sequence has no element at all.
    Protobuf messages go through their proto3 JSON mapping.
    """

    def serialize(self, obj: Any) -> bytes:
        if isinstance(obj, PBMessage):
            values = json_format.MessageToDict(
                obj, preserving_proto_field_name=True
            )
            root_tag = obj.DESCRIPTOR.name
        else:
            try:
                values = type_adapter(type(obj)).dump_python(obj, mode="json")
            except PydanticSerializationError as exc:
                raise SerializationError(str(exc)) from exc
            root_tag = (
                getattr(type(obj), "xml_root", None) or type(obj).__name__
            )
        if not isinstance(values, dict):
            raise SerializationError(
                f"cannot encode {type(obj).__name__} as an XML document"
            )
        root = _build(root_tag, values)
        return ET.tostring(root, encoding="utf-8", xml_declaration=False)

    def deserialize(self, data: bytes, model_type: Type[Any]) -> Any:
        try:
            root = ET.fromstring(data)
        except ET.ParseError as exc:
            raise SerializationError(str(exc)) from exc
        if is_message_type(model_type):
            values = _message_values(root, model_type.DESCRIPTOR)
            try:
                return json_format.ParseDict(values, model_type())
            except json_format.ParseError as exc:
                raise SerializationError(str(exc)) from exc
        values = _element_to_dict(root, model_type)
        try:
            return type_adapter(model_type).validate_python(values)
        except ValidationError as exc:
            raise SerializationError(describe_validation_error(exc)) from exc
