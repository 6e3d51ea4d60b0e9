"""Collaborator interfaces the survey and auto-reply engines depend on.

Engines receive these through their constructors; ``reviewhub.repositories.sql``
holds the SQLAlchemy-backed implementations used by the API and the tasks.
"""
from typing import List, Optional, Protocol

from reviewhub.schemas.ai_settings import AISettingsBase, AISettingsData
from reviewhub.schemas.review import ReviewData
from reviewhub.schemas.survey import NewSurveyResponse, SurveyData, SurveyResponseData


class SurveyRepository(Protocol):
    def get_by_id(self, survey_id: str) -> Optional[SurveyData]: ...

    def append_response(self, survey_id: str, record: NewSurveyResponse) -> SurveyResponseData:
        """Persist a response; raises PersistenceError on write failure."""
        ...

    def find_by_token(self, survey_id: str, token: str) -> Optional[SurveyResponseData]: ...

    def list_responses(self, survey_id: str) -> List[SurveyResponseData]: ...

    def list_surveys(self, user_id: str) -> List[SurveyData]: ...


class StoreLookup(Protocol):
    def get_google_review_url(self, store_id: str) -> Optional[str]: ...

    def get_display_name(self, store_id: str) -> Optional[str]: ...

    def get_category(self, store_id: str) -> Optional[str]: ...


class ReviewRepository(Protocol):
    def list_unreplied(self, user_id: str, store_id: Optional[str] = None) -> List[ReviewData]: ...

    def mark_replied(self, review_id: str, reply_text: str) -> bool:
        """False when the review is missing or already replied."""
        ...

    def get(self, review_id: str) -> Optional[ReviewData]: ...


class AISettingsRepository(Protocol):
    def get(self, user_id: str, store_id: Optional[str] = None) -> Optional[AISettingsData]: ...

    def save(self, user_id: str, store_id: Optional[str], data: AISettingsBase) -> AISettingsData: ...

    def delete(self, user_id: str, store_id: Optional[str] = None) -> bool: ...

    def list_auto_reply_enabled(self) -> List[AISettingsData]: ...

    def list_store_ids_with_settings(self, user_id: str) -> List[str]:
        """Stores of the user that carry their own (non user-wide) settings row."""
        ...
