from __future__ import annotations

from typing import Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

HttpMethod = Literal["get", "post", "put", "delete", "head", "options", "trace", "patch"]


class DescriptorEntry(BaseModel):
    """On-disk shape of one descriptor in a manifest file."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    module_name: str = Field(default="", validation_alias=AliasChoices("module_name", "module"))
    path: str
    http_method: HttpMethod = Field(validation_alias=AliasChoices("http_method", "method"))
    handler_name: str = Field(
        default="", validation_alias=AliasChoices("handler_name", "fn_name", "handler")
    )
    raw_arguments: str = Field(default="", validation_alias=AliasChoices("raw_arguments", "fn_args"))
    raw_return_type: str = Field(
        default="()", validation_alias=AliasChoices("raw_return_type", "fn_return_type")
    )
    import_statements: Union[str, list[str]] = Field(
        default_factory=list,
        validation_alias=AliasChoices("import_statements", "use_statements"),
    )

    @field_validator("http_method", mode="before")
    @classmethod
    def _lower_method(cls, v: object) -> object:
        return v.strip().lower() if isinstance(v, str) else v


class DescriptorManifest(BaseModel):
    descriptors: list[DescriptorEntry] = Field(default_factory=list)
