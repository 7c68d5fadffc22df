"""Pydantic models for discovered apps, config schemas and saved profiles."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class ValueType(StrEnum):
    """How a define's value is edited and validated."""
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    STRING = "string"
    ENUM = "enum"
    PIN = "pin"


class EnumValue(BaseModel):
    value: str
    label: str


class ConfigDefine(BaseModel):
    """One ``#define`` exposed as a build parameter."""

    name: str
    default_value: str
    value_type: ValueType = ValueType.STRING
    enum_values: list[EnumValue] | None = None
    platform: str | None = None
    description: str | None = None


class AppConfigSchema(BaseModel):
    has_config: bool = False
    defines: list[ConfigDefine] = Field(default_factory=list)
    platform_conditional: dict[str, list[ConfigDefine]] = Field(default_factory=dict)


class DiscoveredEnvironment(BaseModel):
    """A PlatformIO environment of an app."""

    name: str
    extends: str | None = None
    platform: str = ""
    board: str | None = None
    framework: str | None = None
    build_flags: list[str] = Field(default_factory=list)
    lib_deps: list[str] = Field(default_factory=list)
    is_hardware_target: bool = False
    can_upload: bool = False


class AppInfo(BaseModel):
    name: str
    path: str = ""
    has_config: bool = False
    environments: list[DiscoveredEnvironment] = Field(default_factory=list)
    config_schema: AppConfigSchema = Field(default_factory=AppConfigSchema)


class MonorepoInfo(BaseModel):
    path: str = ""
    pio_path: str = ""
    apps: list[AppInfo] = Field(default_factory=list)


class SavedProfile(BaseModel):
    """A named set of define values persisted by the backend."""

    name: str
    app_name: str
    environment: str
    defines: dict[str, str] = Field(default_factory=dict)
    created_at: str = ""
    updated_at: str = ""


class AppConfigState(BaseModel):
    """The defines currently being edited for one app/environment."""

    app_name: str = ""
    environment: str = ""
    defines: dict[str, str] = Field(default_factory=dict)
    is_dirty: bool = False
