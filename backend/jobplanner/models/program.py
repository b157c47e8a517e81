from sqlalchemy import Column, String, Integer, JSON
from jobplanner.database import Base


class Program(Base):
    """Educational program a user holds a credential in (reference data)."""

    __tablename__ = "programs"

    program_id = Column(String(100), primary_key=True)
    program_name = Column(String(300), nullable=False)
    program_type = Column(String(20), nullable=False, default="certificate")
    school = Column(String(200), nullable=False, default="")
    career_pathway = Column(String(100), nullable=True)
    keywords = Column(JSON, nullable=False, default=list)
    typical_salary_min = Column(Integer, nullable=True)
    typical_salary_max = Column(Integer, nullable=True)
