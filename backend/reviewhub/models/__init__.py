from reviewhub.models.store import Store
from reviewhub.models.survey import Survey, SurveyResponse
from reviewhub.models.review import Review
from reviewhub.models.ai_settings import AISettings

__all__ = [
    "Store",
    "Survey",
    "SurveyResponse",
    "Review",
    "AISettings",
]
