"""
Deployment configuration read from the Lambda environment at cold start.
"""

import os
from enum import Enum
from typing import Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

from .exceptions import ConfigurationError
from .policy import DestinationMode, DestinationPolicy

DEFAULT_ALLOWED_CONTENT_TYPES = frozenset({"image/jpeg", "image/jpg"})
DEFAULT_JPEG_QUALITY = 95

ENV_ALLOWED_CONTENT_TYPES = "ALLOWED_CONTENT_TYPES"
ENV_DESTINATION_POLICY = "DESTINATION_POLICY"
ENV_DESTINATION_PREFIX = "DESTINATION_PREFIX"
ENV_UNSUPPORTED_CONTENT_TYPE = "UNSUPPORTED_CONTENT_TYPE"
ENV_JPEG_QUALITY = "JPEG_QUALITY"

_FIELD_ENV_NAMES = {
    "allowed_content_types": ENV_ALLOWED_CONTENT_TYPES,
    "destination": ENV_DESTINATION_PREFIX,
    "unsupported_content_type": ENV_UNSUPPORTED_CONTENT_TYPE,
    "jpeg_quality": ENV_JPEG_QUALITY,
}


class UnsupportedTypeAction(str, Enum):
    """Handling of objects whose content type is not whitelisted."""
    PASSTHROUGH = "passthrough"
    SKIP = "skip"


class HandlerConfig(BaseModel):
    """Read-only settings shared by every invocation of one container."""
    allowed_content_types: frozenset[str] = DEFAULT_ALLOWED_CONTENT_TYPES
    destination: DestinationPolicy = Field(default_factory=DestinationPolicy)
    unsupported_content_type: UnsupportedTypeAction = UnsupportedTypeAction.PASSTHROUGH
    jpeg_quality: int = Field(DEFAULT_JPEG_QUALITY, ge=1, le=100)

    class Config:
        frozen = True

    def is_allowed(self, content_type: str) -> bool:
        """Exact, case-sensitive whitelist match."""
        return content_type in self.allowed_content_types

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "HandlerConfig":
        """
        Build configuration from environment variables.

        Raises:
            ConfigurationError: If a variable holds an invalid value
        """
        env = os.environ if environ is None else environ

        allowed = DEFAULT_ALLOWED_CONTENT_TYPES
        raw_allowed = env.get(ENV_ALLOWED_CONTENT_TYPES)
        if raw_allowed is not None:
            allowed = frozenset(t.strip() for t in raw_allowed.split(",") if t.strip())
            if not allowed:
                raise ConfigurationError(
                    message="Content type whitelist must not be empty",
                    config_key=ENV_ALLOWED_CONTENT_TYPES,
                )

        mode = _parse_choice(env, ENV_DESTINATION_POLICY, DestinationMode, DestinationMode.REWRITE)
        action = _parse_choice(
            env,
            ENV_UNSUPPORTED_CONTENT_TYPE,
            UnsupportedTypeAction,
            UnsupportedTypeAction.PASSTHROUGH,
        )

        raw_quality = env.get(ENV_JPEG_QUALITY, str(DEFAULT_JPEG_QUALITY))
        try:
            quality = int(raw_quality)
        except ValueError:
            raise ConfigurationError(
                message=f"{ENV_JPEG_QUALITY} must be an integer, got {raw_quality!r}",
                config_key=ENV_JPEG_QUALITY,
            )

        try:
            if mode is DestinationMode.IDENTITY:
                destination = DestinationPolicy.identity()
            else:
                destination = DestinationPolicy.rewrite(env.get(ENV_DESTINATION_PREFIX, "raw"))

            return cls(
                allowed_content_types=allowed,
                destination=destination,
                unsupported_content_type=action,
                jpeg_quality=quality,
            )
        except ValidationError as e:
            errors = e.errors()
            first = errors[0] if errors else {}
            loc = first.get("loc") or ("destination",)
            config_key = _FIELD_ENV_NAMES.get(str(loc[0]), ENV_DESTINATION_PREFIX)
            raise ConfigurationError(
                message=f"Invalid configuration for {config_key}: {first.get('msg', e)}",
                config_key=config_key,
            )


def _parse_choice(env: Mapping[str, str], name: str, choices: type[Enum], default: Enum) -> Enum:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return choices(raw.strip().lower())
    except ValueError:
        allowed = ", ".join(c.value for c in choices)
        raise ConfigurationError(
            message=f"{name} must be one of: {allowed}; got {raw!r}",
            config_key=name,
        )
