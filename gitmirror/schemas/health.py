"""Pydantic response models for the health and info endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    """Response model for the /health endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    status: str
    repos_dir: str = Field(serialization_alias="reposDir")
    timestamp: datetime


class InfoResponse(BaseModel):
    """Response model for the / endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    endpoints: dict[str, str]
    repos_dir: str = Field(serialization_alias="reposDir")
