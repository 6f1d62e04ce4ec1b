from backend.leaddesk.db.base_class import Base

# Import models to register metadata for Base.metadata.create_all in tests
from backend.leaddesk.models.user import User  # noqa: F401
from backend.leaddesk.models.lead import Lead  # noqa: F401
from backend.leaddesk.models.lead_history import LeadHistory  # noqa: F401
from backend.leaddesk.models.training_class import TrainingClass  # noqa: F401
from backend.leaddesk.models.class_student import ClassStudent  # noqa: F401
from backend.leaddesk.models.attendance import Attendance  # noqa: F401
from backend.leaddesk.models.mark import Mark  # noqa: F401
