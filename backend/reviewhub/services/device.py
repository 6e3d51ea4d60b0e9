"""Mobile/desktop classification for the survey redirect."""
from typing import Optional

from reviewhub.core.config import settings
from reviewhub.schemas.redirect import DeviceClass

MOBILE_KEYWORDS = (
    "mobile",
    "android",
    "iphone",
    "ipad",
    "ipod",
    "blackberry",
    "windows phone",
)


class DeviceClassifier:
    """User-agent keyword match, narrow viewport, or the Sec-CH-UA-Mobile client hint."""

    def __init__(self, max_mobile_width: Optional[int] = None):
        if max_mobile_width is None:
            max_mobile_width = settings.MOBILE_MAX_VIEWPORT_WIDTH
        self.max_mobile_width = max_mobile_width

    def classify(
        self,
        user_agent: Optional[str] = None,
        viewport_width: Optional[int] = None,
        mobile_hint: Optional[str] = None,
    ) -> DeviceClass:
        if mobile_hint is not None and mobile_hint.strip() == "?1":
            return DeviceClass.MOBILE
        ua = (user_agent or "").lower()
        if any(keyword in ua for keyword in MOBILE_KEYWORDS):
            return DeviceClass.MOBILE
        if viewport_width is not None and 0 < viewport_width <= self.max_mobile_width:
            return DeviceClass.MOBILE
        return DeviceClass.DESKTOP
