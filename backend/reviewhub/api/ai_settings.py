"""AI reply settings: read (defaults when absent), full replace, delete."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from reviewhub.core.database import get_db
from reviewhub.core.security import get_current_user_id
from reviewhub.repositories.sql import SqlAISettingsRepository
from reviewhub.schemas.ai_settings import AISettingsBase, AISettingsResponse, AISettingsUpdate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/ai-settings", tags=["ai-settings"])


@router.get("", response_model=AISettingsResponse)
def get_ai_settings(
    store_id: Optional[str] = Query(None, alias="storeId"),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    stored = SqlAISettingsRepository(db).get(user_id, store_id)
    if stored is None:
        logger.debug(f"No AI settings for user={user_id} store={store_id}, returning defaults")
        return AISettingsResponse(settings=AISettingsBase(), is_default=True)
    return AISettingsResponse(settings=stored, is_default=False)


@router.post("", response_model=AISettingsResponse)
def save_ai_settings(
    data: AISettingsUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    saved = SqlAISettingsRepository(db).save(user_id, data.store_id, data)
    logger.info(f"AI settings saved for user={user_id} store={data.store_id}")
    return AISettingsResponse(settings=saved, message="AI settings saved")


@router.delete("")
def delete_ai_settings(
    store_id: Optional[str] = Query(None, alias="storeId"),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    if not SqlAISettingsRepository(db).delete(user_id, store_id):
        raise HTTPException(status_code=404, detail="Settings not found")
    logger.info(f"AI settings deleted for user={user_id} store={store_id}")
    return {"success": True, "message": "AI settings deleted"}
