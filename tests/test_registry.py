import pytest
from pydantic import ValidationError

from multiresponse.config import NegotiationConfig
from multiresponse.errors import UnsupportedFormat
from multiresponse.formats import Format
from multiresponse.serializers.json_serializer import JSONSerializer
from multiresponse.serializers.protobuf_serializer import ProtobufSerializer
from multiresponse.serializers.registry import CodecRegistry
from multiresponse.serializers.xml_serializer import XMLSerializer


def test_canonical_mime_roundtrip(full_registry):
    for fmt in full_registry.enabled_formats:
        mime = full_registry.canonical_mime(fmt)
        assert full_registry.resolve_format(mime) is fmt


def test_canonical_strings(full_registry):
    assert full_registry.supported_types() == [
        "application/json",
        "application/protobuf",
        "application/xml",
    ]


@pytest.mark.parametrize(
    "mime,expected",
    [
        ("application/json", Format.JSON),
        ("Application/JSON; charset=UTF-8", Format.JSON),
        ("application/protobuf; charset=UTF-8", Format.PROTOBUF),
        ("application/x-protobuf", Format.PROTOBUF),
        ("application/xml", Format.XML),
        ("text/xml; charset=utf-8", Format.XML),
    ],
)
def test_resolve_format(full_registry, mime, expected):
    assert full_registry.resolve_format(mime) is expected


@pytest.mark.parametrize("mime", ["foo/bar", "text/plain", "", " ; q=1"])
def test_resolve_format_unknown(full_registry, mime):
    assert full_registry.resolve_format(mime) is None
    assert not full_registry.is_registered(mime)


def test_disabled_formats_do_not_resolve(json_only_registry):
    assert json_only_registry.resolve_format("application/protobuf") is None
    assert json_only_registry.resolve_format("application/xml") is None
    with pytest.raises(UnsupportedFormat):
        json_only_registry.canonical_mime(Format.PROTOBUF)
    with pytest.raises(UnsupportedFormat):
        json_only_registry.get(Format.XML)


def test_serializer_per_format(full_registry):
    assert isinstance(full_registry.get(Format.JSON), JSONSerializer)
    assert isinstance(full_registry.get(Format.PROTOBUF), ProtobufSerializer)
    assert isinstance(full_registry.get(Format.XML), XMLSerializer)


def test_default_follows_priority():
    assert CodecRegistry(NegotiationConfig()).default_format is Format.JSON
    reg = CodecRegistry(
        NegotiationConfig(enable_json=False, enable_xml=True)
    )
    assert reg.default_format is Format.PROTOBUF
    assert reg.enabled_formats == (Format.PROTOBUF, Format.XML)


def test_configured_default():
    reg = CodecRegistry(
        NegotiationConfig(enable_xml=True, default_format=Format.XML)
    )
    assert reg.default_format is Format.XML


def test_type_wildcard(full_registry, json_proto_registry):
    assert full_registry.resolve_type_wildcard("text") is Format.XML
    assert full_registry.resolve_type_wildcard("application") is Format.JSON
    assert json_proto_registry.resolve_type_wildcard("text") is None


def test_no_formats_fails_fast():
    with pytest.raises(ValidationError, match="at least one format"):
        NegotiationConfig(
            enable_json=False, enable_protobuf=False, enable_xml=False
        )


def test_default_must_be_enabled():
    with pytest.raises(ValidationError, match="not enabled"):
        NegotiationConfig(default_format=Format.XML)


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("MULTIRESPONSE_FORMATS", "xml, JSON")
    monkeypatch.setenv("MULTIRESPONSE_DEFAULT_FORMAT", "xml")
    monkeypatch.setenv("MULTIRESPONSE_JSON_LOGGING", "true")
    cfg = NegotiationConfig.from_env()
    assert cfg.enabled_formats() == [Format.JSON, Format.XML]
    assert cfg.default_format is Format.XML
    assert cfg.json_logging is True


def test_config_from_env_defaults(monkeypatch):
    monkeypatch.delenv("MULTIRESPONSE_FORMATS", raising=False)
    monkeypatch.delenv("MULTIRESPONSE_DEFAULT_FORMAT", raising=False)
    monkeypatch.delenv("MULTIRESPONSE_JSON_LOGGING", raising=False)
    cfg = NegotiationConfig.from_env()
    assert cfg.enabled_formats() == [Format.JSON, Format.PROTOBUF]


def test_config_from_env_empty_fails(monkeypatch):
    monkeypatch.setenv("MULTIRESPONSE_FORMATS", " , ")
    with pytest.raises(ValidationError, match="at least one format"):
        NegotiationConfig.from_env()


def test_config_from_env_rejects_unknown_formats(monkeypatch):
    monkeypatch.setenv("MULTIRESPONSE_FORMATS", "json,yaml,Avro")
    with pytest.raises(ValueError, match="avro, yaml"):
        NegotiationConfig.from_env()


def test_config_from_env_ignores_empty_names(monkeypatch):
    monkeypatch.setenv("MULTIRESPONSE_FORMATS", "json,,protobuf,")
    monkeypatch.delenv("MULTIRESPONSE_DEFAULT_FORMAT", raising=False)
    cfg = NegotiationConfig.from_env()
    assert cfg.enabled_formats() == [Format.JSON, Format.PROTOBUF]
