"""Configuration for the inlining generator.

Configuration is a frozen Pydantic model. It can be built directly, from a
properties dictionary, or loaded from a YAML file in which ``${VAR_NAME}``
references are substituted from the environment.
"""

import os
import re
from pathlib import Path
from typing import Any, Self, cast

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from sourcegen_inlining.errors import ConfigError
from sourcegen_inlining.models import TriggerDescriptor, TriggerSource
from sourcegen_inlining.template import PlaceholderStyle

# Pattern for environment variable substitution: ${VAR_NAME}
_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")
_IDENTIFIER_PATTERN = re.compile(r"^@?[A-Za-z_][A-Za-z0-9_]*$")


class InliningConfig(BaseModel):
    """Configuration for InliningGenerator with Pydantic validation."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    placeholder_style: PlaceholderStyle = Field(
        default=PlaceholderStyle.SLOT,
        description="Template dialect: 'slot' ({action.arg0}) or 'positional' ({name0})",
    )
    inlined_name_suffix: str = Field(
        default="_Inlined",
        description="Suffix appended to derive the generated method's name",
        min_length=1,
    )
    receiver_placeholder: str = Field(
        default="@this",
        description="Local name bound to an extension method receiver",
    )
    trigger_attribute: str = Field(
        default="GenerateInlined",
        description="Attribute requesting an inlined sibling of a method",
    )
    accessibility_trigger: str = Field(
        default="Inline",
        description="Attribute class nesting Public/Private/Protected/Internal triggers",
    )
    template_attribute: str = Field(
        default="SupportsInlining",
        description="Attribute declaring a callable's inlining template",
    )
    lambda_marker: str = Field(
        default="Inline",
        description="Attribute marking a lambda argument for inlining",
    )
    require_lambda_marker: bool = Field(
        default=False,
        description="Only inline calls whose lambda carries the marker attribute",
    )
    preamble: list[str] = Field(
        default_factory=lambda: ["#define SOURCEGEN"],
        description="Lines emitted at the top of every generated file",
    )
    max_workers: int = Field(
        default=1,
        description="Worker threads used to transform trigger methods",
        gt=0,
    )
    report_unresolved_placeholders: bool = Field(
        default=True,
        description="Emit a warning for placeholders left unresolved in a template",
    )
    triggers: list[TriggerDescriptor] = Field(
        default_factory=list,
        description="Trigger methods registered explicitly instead of by attribute",
    )

    @field_validator("receiver_placeholder")
    @classmethod
    def validate_receiver_placeholder(cls, v: str) -> str:
        """Require the receiver placeholder to be a C# identifier."""
        if not _IDENTIFIER_PATTERN.match(v):
            raise ValueError(f"'{v}' is not a valid C# identifier")
        return v

    @field_validator("triggers")
    @classmethod
    def mark_configured_triggers(
        cls, v: list[TriggerDescriptor]
    ) -> list[TriggerDescriptor]:
        """Tag every explicitly configured trigger with its origin."""
        return [t.model_copy(update={"source": TriggerSource.CONFIG}) for t in v]

    @classmethod
    def from_properties(cls, properties: dict[str, Any]) -> Self:
        """Create configuration from a properties dictionary.

        Raises:
            ConfigError: If validation fails

        """
        try:
            return cls.model_validate(properties)
        except ValidationError as e:
            raise ConfigError(f"Invalid inlining configuration: {e}") from e


def load_config(path: Path) -> InliningConfig:
    """Load configuration from a YAML file with environment variable substitution.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        Validated InliningConfig.

    Raises:
        ConfigError: If the file cannot be read, YAML is invalid, environment
            variables are missing, or validation fails.

    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Configuration file not found: {path}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read configuration file {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration in {path} must be a mapping")

    return InliningConfig.from_properties(_substitute_env_vars(data, path))


def _substitute_env_vars(value: Any, path: Path) -> Any:  # noqa: ANN401
    """Recursively substitute ${VAR_NAME} patterns with environment variable values."""
    if isinstance(value, str):
        return _substitute_string(value, path)
    if isinstance(value, dict):
        dict_value = cast(dict[str, Any], value)
        return {k: _substitute_env_vars(v, path) for k, v in dict_value.items()}
    if isinstance(value, list):
        list_value = cast(list[Any], value)
        return [_substitute_env_vars(item, path) for item in list_value]
    return value


def _substitute_string(value: str, path: Path) -> str:
    def replace_match(match: re.Match[str]) -> str:
        var_name = match.group(1)
        env_value = os.environ.get(var_name)
        if env_value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not defined "
                f"(referenced in {path})"
            )
        return env_value

    return _ENV_VAR_PATTERN.sub(replace_match, value)
