from fitassess.models.user import User
from fitassess.models.assessment import Assessment, ASSESSMENT_STATUSES

__all__ = ["User", "Assessment", "ASSESSMENT_STATUSES"]
