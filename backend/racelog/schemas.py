from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel, Field

class StudentCreate(BaseModel):
    roll_no: str = Field(alias="rollNo")
    name: str
    age: int | None = None
    weight: float | None = None
    contact: str = ""
    gender: str
    race: str  # e.g. 1600m
    running_ground: str | None = Field(default=None, alias="runningGround")
    academy: str = ""
    student_role: str | None = Field(default=None, alias="studentRole")
    tag_id: str

    model_config = {"populate_by_name": True}

class ScanCreate(BaseModel):
    tag_id: str
    scanned_at: datetime | None = None  # reader local time; server clock if omitted

class MarksCriterionCreate(BaseModel):
    gender: str
    role: str = ""
    race: str
    min_seconds: int = Field(ge=0)
    max_seconds: int = Field(ge=0)
    marks: int
