from __future__ import annotations

import keyword
from typing import Any

import diwire
from pydantic import Field, ValidationError, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from handlerwire.exceptions import HandlerWireConfigurationError

DEFAULT_TARGET_CONTRACT = "handlerwire.contracts.RequestHandler"
DEFAULT_GENERATOR_NAME = "handlerwire.HandlerRegistrationGenerator"
DEFAULT_GENERATOR_VERSION = "1.0.0"


def _validate_identifier(value: str, *, field_name: str) -> str:
    if not value.isidentifier():
        msg = f"'{field_name}' must be a valid Python identifier, got {value!r}."
        raise ValueError(msg)
    if keyword.iskeyword(value):
        msg = f"'{field_name}' must not be a Python keyword, got {value!r}."
        raise ValueError(msg)
    return value


class GeneratorSettings(BaseSettings):
    """Configure handler discovery and the generated registration module.

    Every field can be overridden from the environment with the
    ``HANDLERWIRE_`` prefix, for example ``HANDLERWIRE_MAX_WORKERS=4``.
    """

    model_config = SettingsConfigDict(env_prefix="HANDLERWIRE_", frozen=True)

    target_contract: str = DEFAULT_TARGET_CONTRACT
    """Fully-qualified name of the two-parameter contract handlers implement."""

    unit_name: str = "handler_registrations"
    """Module name of the generated unit; the file is written as ``<unit_name>.py``."""

    function_name: str = "register_handlers"
    """Name of the generated registration function."""

    registration_method: str = "add_concrete"
    """Container method called once per handler."""

    lifetime: str = "SCOPED"
    """Member of ``diwire.Lifetime`` used for every registration."""

    scope: str = "REQUEST"
    """Member of ``diwire.Scope`` used for every registration."""

    include_timestamp: bool = False
    """Write an informational generation timestamp into the module docstring."""

    max_workers: int = Field(default=1, ge=1)
    """Worker threads used to resolve and match candidates."""

    generator_name: str = DEFAULT_GENERATOR_NAME
    generator_version: str = DEFAULT_GENERATOR_VERSION

    @field_validator("target_contract")
    @classmethod
    def _check_target_contract(cls, value: str) -> str:
        parts = value.split(".")
        if len(parts) < 2:
            msg = f"'target_contract' must be a dotted module path, got {value!r}."
            raise ValueError(msg)
        for part in parts:
            _validate_identifier(part, field_name="target_contract")
        return value

    @field_validator("unit_name", "function_name", "registration_method", "lifetime", "scope")
    @classmethod
    def _check_identifier(cls, value: str, info: ValidationInfo) -> str:
        return _validate_identifier(value, field_name=info.field_name or "value")

    @field_validator("lifetime")
    @classmethod
    def _check_lifetime(cls, value: str) -> str:
        if value not in diwire.Lifetime.__members__:
            msg = f"'lifetime' must name a member of diwire.Lifetime, got {value!r}."
            raise ValueError(msg)
        return value

    @field_validator("scope")
    @classmethod
    def _check_scope(cls, value: str) -> str:
        if not isinstance(getattr(diwire.Scope, value, None), diwire.BaseScope):
            msg = f"'scope' must name a scope of diwire.Scope, got {value!r}."
            raise ValueError(msg)
        return value

    @property
    def unit_file_name(self) -> str:
        return f"{self.unit_name}.py"


def load_settings(**overrides: Any) -> GeneratorSettings:
    """Build settings from the environment and explicit overrides.

    Args:
        **overrides: Field values that take precedence over the environment.

    Raises:
        HandlerWireConfigurationError: If any value fails validation.

    """
    try:
        return GeneratorSettings(**overrides)
    except ValidationError as error:
        msg = f"Invalid handlerwire generator settings: {error}"
        raise HandlerWireConfigurationError(msg) from error


__all__ = ["DEFAULT_TARGET_CONTRACT", "GeneratorSettings", "load_settings"]
