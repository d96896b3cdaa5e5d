"""Shared pydantic base and lenient field types for wire event models."""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict


class WireModel(BaseModel):
    """Base model for protocol events.

    Unknown keys are kept (agents add fields between releases) and aliases
    may be used interchangeably with field names.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")


# Optional wire fields read leniently. A malformed value falls back to the
# field's default instead of failing the whole event.


def optional_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def optional_number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def flag(value: Any) -> bool:
    return value is True


def optional_mapping(value: Any) -> dict[str, Any] | None:
    return value if isinstance(value, dict) else None


LenientStr = Annotated[str | None, BeforeValidator(optional_str)]
LenientStrList = Annotated[list[str], BeforeValidator(str_list)]
LenientNumber = Annotated[float | None, BeforeValidator(optional_number)]
LenientFlag = Annotated[bool, BeforeValidator(flag)]
LenientMapping = Annotated[dict[str, Any] | None, BeforeValidator(optional_mapping)]
