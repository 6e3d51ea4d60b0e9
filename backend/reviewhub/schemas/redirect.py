from pydantic import BaseModel
from typing import List, Optional
import enum


class DeviceClass(str, enum.Enum):
    MOBILE = "mobile"
    DESKTOP = "desktop"


class NavigationStrategy(str, enum.Enum):
    SAME_TAB = "same_tab"          # window.location.href = url
    ANCHOR_CLICK = "anchor_click"  # temporary <a target="_blank">, click, remove
    NEW_CONTEXT = "new_context"    # window.open(url, "_blank")


class DispatchStatus(str, enum.Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class RedirectViewState(str, enum.Enum):
    REDIRECTING = "redirecting"
    COMPLETED = "completed"
    RETRY_OFFERED = "retry_offered"


class RedirectPlan(BaseModel):
    """Serialisable redirect instructions for the browser."""
    url: str
    device: DeviceClass
    strategies: List[NavigationStrategy]
    completion_delay_ms: int
    manual_open_url: str


class DispatchResult(BaseModel):
    status: DispatchStatus
    strategy: Optional[NavigationStrategy] = None
    errors: List[str] = []

    @property
    def succeeded(self) -> bool:
        return self.status == DispatchStatus.SUCCEEDED


class RedirectResolution(BaseModel):
    view: RedirectViewState
    dispatch: DispatchResult
    manual_open_url: str
