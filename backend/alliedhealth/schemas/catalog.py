"""Option lists served from the reference catalogs."""

from uuid import UUID

from pydantic import BaseModel, Field


class Option(BaseModel):
    id: UUID
    name: str


class PatientOption(BaseModel):
    id: int
    name: str
    mrn: str


class WardOption(Option):
    departments: list[UUID] = Field(default_factory=list, description="Covering department ids")


class InterventionOption(Option):
    specialty_id: UUID
