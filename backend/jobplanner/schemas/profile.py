from pydantic import BaseModel
from typing import Literal, Optional
from jobplanner.schemas.listing import Coordinates


class UserProfile(BaseModel):
    id: str
    name: str = ""
    location: Optional[Coordinates] = None
    address: Optional[str] = None
    max_commute_minutes: int = 45
    preferred_job_types: list[str] = []
    skills: list[str] = []
    education: str = ""
    salary_min: Optional[int] = None
    program_id: Optional[str] = None
    program_name: Optional[str] = None


class ProgramProfile(BaseModel):
    program_id: str
    program_name: str
    program_type: Literal["certificate", "AS", "BAS"] = "certificate"
    school: str = ""
    career_pathway: Optional[str] = None
    keywords: list[str] = []
    typical_salary_min: Optional[int] = None
    typical_salary_max: Optional[int] = None

    class Config:
        from_attributes = True
