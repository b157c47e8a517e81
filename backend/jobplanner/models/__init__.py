from jobplanner.models.job import Job
from jobplanner.models.profile import Profile
from jobplanner.models.program import Program
from jobplanner.models.daily_plan import DailyPlanRecord

__all__ = ["Job", "Profile", "Program", "DailyPlanRecord"]
