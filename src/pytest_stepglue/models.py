"""Base Pydantic models for runtime elements.

This module defines the foundational model classes used by all scenario,
glue and result structures. It enforces immutability and strict schema
validation so that compiled test cases are deterministic and safe to
share between concurrently running scenarios.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SchemaModel(BaseModel):
    """Base immutable model for all runtime elements.

    This class serves as the root for all Pydantic models representing
    scenarios, steps, glue definitions, matches and results.

    Design principles enforced by this model:
        - Immutability: elements cannot be modified after creation.
          A compiled test case therefore always reflects the registry
          state at compile time.
        - Strict schema validation: unknown or extra fields are rejected
          to avoid silent errors caused by typos in pickle documents or
          plugin declarations.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        frozen=True,
        extra='forbid',
    )


class DescribedMixin(SchemaModel):
    """Mixin providing element self-documentation.

    The fields defined in this model do not affect execution semantics
    and are used purely for reporting.
    """

    title: str | None = Field(
        default=None,
        title='Title',
        description='Short human-readable title of the element.',
    )

    description: str | None = Field(
        default=None,
        title='Description',
        description='Detailed human-readable description of the element.',
    )


class SettingsModel(BaseSettings):
    """Base immutable model for runtime settings.

    Design principles enforced by this model:
        - Immutability: resolved settings cannot be modified after creation.
        - Tolerant schema handling: unknown or extra fields are ignored,
          so unrelated environment variables never break resolution.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra='ignore',
    )
