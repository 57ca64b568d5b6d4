"""Strict schema baselines with forbidden extras by default."""

from pydantic import BaseModel, ConfigDict


class StrictModel(BaseModel):
    """Neutral strict base for response DTOs."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)


class StrictRequestModel(StrictModel):
    """Request DTO base that always forbids unexpected fields."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)


class StandardizedModel(BaseModel):
    """Base model for ORM-backed responses."""

    model_config = ConfigDict(use_enum_values=True, populate_by_name=True, from_attributes=True)
