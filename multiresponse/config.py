import os
from typing import List
from typing import Optional

from pydantic import BaseModel
from pydantic import model_validator

from multiresponse.formats import PRIORITY
from multiresponse.formats import Format

FORMATS_ENV = "MULTIRESPONSE_FORMATS"
DEFAULT_FORMAT_ENV = "MULTIRESPONSE_DEFAULT_FORMAT"
JSON_LOGGING_ENV = "MULTIRESPONSE_JSON_LOGGING"


class NegotiationConfig(BaseModel):
    """
    Which wire formats are enabled, and how responses fall back
    when the Accept header does not decide.
    """

    enable_json: bool = True
    enable_protobuf: bool = True
    enable_xml: bool = False
    default_format: Optional[Format] = None
    mirror_content_type: bool = True
    json_indent: Optional[int] = None
    json_logging: bool = False

    @model_validator(mode="after")
    def check_formats(self) -> "NegotiationConfig":
        enabled = self.enabled_formats()
        if not enabled:
            raise ValueError("at least one format must be enabled")
        default = self.default_format
        if default is not None and default not in enabled:
            raise ValueError(
                f"default format {default.value!r} is not enabled"
            )
        return self

    def is_enabled(self, fmt: Format) -> bool:
        return {
            Format.JSON: self.enable_json,
            Format.PROTOBUF: self.enable_protobuf,
            Format.XML: self.enable_xml,
        }[fmt]

    def enabled_formats(self) -> List[Format]:
        """Enabled formats in priority order."""
        return [f for f in PRIORITY if self.is_enabled(f)]

    @classmethod
    def from_env(cls) -> "NegotiationConfig":
        """
        Build a config from MULTIRESPONSE_* environment variables,
        e.g. MULTIRESPONSE_FORMATS=json,xml.
        """
        values = {}
        formats = os.getenv(FORMATS_ENV)
        if formats is not None:
            names = {f.strip().lower() for f in formats.split(",")} - {""}
            unknown = names - {f.value for f in Format}
            if unknown:
                raise ValueError(
                    f"{FORMATS_ENV}: unknown format(s) "
                    + ", ".join(sorted(unknown))
                )
            values["enable_json"] = Format.JSON.value in names
            values["enable_protobuf"] = Format.PROTOBUF.value in names
            values["enable_xml"] = Format.XML.value in names
        default = os.getenv(DEFAULT_FORMAT_ENV)
        if default:
            values["default_format"] = default.strip().lower()
        json_logging = os.getenv(JSON_LOGGING_ENV)
        if json_logging is not None:
            values["json_logging"] = json_logging.strip().lower() in (
                "1",
                "true",
                "yes",
            )
        return cls(**values)
