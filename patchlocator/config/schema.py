from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_INSTRUMENTATION_ATTRIBUTES = ["data-cluso-id", "data-cluso-name", "data-cluso-ui"]


class LocatorConfig(BaseModel):
    """Tunable limits of the fast path. Defaults are the production values."""

    text_scope_radius: int = 80
    style_scan_radius: int = 40
    tag_block_max_lines: int = 12
    min_score: int = 50
    max_stable_attributes: int = 3
    reliable_line_floor: int = 5
    fallback_context_lines: int = 100
    instrumentation_attributes: list[str] = Field(
        default_factory=lambda: list(DEFAULT_INSTRUMENTATION_ATTRIBUTES)
    )
    blocked_path_fragments: list[str] = Field(default_factory=list)
    allowed_path_fragments: list[str] = Field(default_factory=list)

    @field_validator(
        "text_scope_radius",
        "style_scan_radius",
        "tag_block_max_lines",
        "max_stable_attributes",
        "fallback_context_lines",
    )
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be a positive integer")
        return value

    @field_validator("min_score", "reliable_line_floor")
    @classmethod
    def validate_non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("must not be negative")
        return value


DEFAULT_CONFIG = LocatorConfig()


class ElementDescriptor(BaseModel):
    """Element snapshot reported by the live inspector."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    tag_name: str = Field(default="", alias="tagName")
    attributes: dict[str, str] = Field(default_factory=dict)
    class_name: str = Field(default="", alias="className")
    id: str = ""
    text: str = ""

    @field_validator("attributes", mode="before")
    @classmethod
    def coerce_attributes(cls, value: Any) -> dict[str, str]:
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ValueError("attributes must be a mapping of name to value")
        return {str(name): str(item) for name, item in value.items() if item is not None}

    @field_validator("tag_name", "class_name", "id", "text", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value)

    @field_validator("tag_name")
    @classmethod
    def strip_tag_name(cls, value: str) -> str:
        return value.strip()


class TextChange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["text"] = "text"
    old_text: str = Field(alias="oldText")
    new_text: str = Field(alias="newText")


class StyleChange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["style"] = "style"
    css_changes: dict[str, str] = Field(default_factory=dict, alias="cssChanges")

    @field_validator("css_changes", mode="before")
    @classmethod
    def coerce_values(cls, value: Any) -> dict[str, str]:
        if not isinstance(value, dict):
            raise ValueError("cssChanges must be a mapping of property to value")
        return {str(prop): str(item) for prop, item in value.items() if item is not None}


class AttributeChange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["attribute"] = "attribute"
    name: str = "src"
    new_value: str = Field(alias="newValue")
    old_value: str = Field(default="", alias="oldValue")

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("attribute name must not be empty")
        return normalized


ChangeRequest = Annotated[
    Union[TextChange, StyleChange, AttributeChange],
    Field(discriminator="kind"),
]


class PatchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source_text: str = Field(alias="sourceText")
    element: ElementDescriptor = Field(default_factory=ElementDescriptor, alias="elementDescriptor")
    change: ChangeRequest = Field(alias="changeRequest")
    reported_source_line: int | float | None = Field(default=None, alias="reportedSourceLine")
    file_path: str = Field(default="", alias="filePath")
