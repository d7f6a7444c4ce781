# Import all models so Base.metadata is complete for create_all / alembic.
from taxsurvey.models.property_survey import PropertySurvey  # noqa: F401
from taxsurvey.models.property_image import PropertyImage  # noqa: F401
from taxsurvey.models.audit_log import SurveyAuditLog  # noqa: F401
