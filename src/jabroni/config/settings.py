"""Settings Pydantic model for jabroni configuration."""

from __future__ import annotations

from pydantic import BaseModel, field_validator

DEFAULT_EXTENSIONS_DIRNAME = "extensions"
DEFAULT_SUFFIX = ".py"


class Settings(BaseModel):
    """Where extension files live and how they are named."""

    extensions_dirname: str = DEFAULT_EXTENSIONS_DIRNAME
    suffix: str = DEFAULT_SUFFIX
    # Base directory for <classname>/extensions/; defaults to the defining file's directory
    root: str | None = None
    verbose: bool = False

    model_config = {"extra": "ignore"}

    @field_validator("suffix")
    @classmethod
    def _suffix_has_dot(cls, value: str) -> str:
        if not value.startswith("."):
            raise ValueError(f"suffix must start with '.', got {value!r}")
        return value

    @field_validator("extensions_dirname")
    @classmethod
    def _dirname_is_single_segment(cls, value: str) -> str:
        if not value or "/" in value or "\\" in value:
            raise ValueError(f"extensions_dirname must be a single path segment, got {value!r}")
        return value
