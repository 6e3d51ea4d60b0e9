import pytest

from reviewhub.core.config import settings
from reviewhub.schemas.redirect import DeviceClass
from reviewhub.services.device import DeviceClassifier

IPHONE_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
ANDROID_UA = "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 Chrome/120.0 Mobile Safari/537.36"
DESKTOP_UA = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 Chrome/120.0 Safari/537.36"


@pytest.fixture
def classifier():
    return DeviceClassifier(max_mobile_width=768)


@pytest.mark.parametrize("user_agent", [IPHONE_UA, ANDROID_UA])
def test_mobile_user_agents(classifier, user_agent):
    assert classifier.classify(user_agent=user_agent) == DeviceClass.MOBILE


def test_desktop_user_agent(classifier):
    assert classifier.classify(user_agent=DESKTOP_UA, viewport_width=1440) == DeviceClass.DESKTOP


@pytest.mark.parametrize("width,expected", [
    (375, DeviceClass.MOBILE),
    (768, DeviceClass.MOBILE),
    (769, DeviceClass.DESKTOP),
    (0, DeviceClass.DESKTOP),
])
def test_narrow_viewport_counts_as_mobile(classifier, width, expected):
    assert classifier.classify(user_agent=DESKTOP_UA, viewport_width=width) == expected


def test_client_hint(classifier):
    assert classifier.classify(user_agent=DESKTOP_UA, mobile_hint="?1") == DeviceClass.MOBILE
    assert classifier.classify(user_agent=DESKTOP_UA, mobile_hint="?0") == DeviceClass.DESKTOP


def test_nothing_known_defaults_to_desktop(classifier):
    assert classifier.classify() == DeviceClass.DESKTOP


def test_zero_width_limit_disables_viewport_check():
    classifier = DeviceClassifier(max_mobile_width=0)
    assert classifier.max_mobile_width == 0
    assert classifier.classify(user_agent=DESKTOP_UA, viewport_width=375) == DeviceClass.DESKTOP


def test_width_limit_defaults_to_settings():
    assert DeviceClassifier().max_mobile_width == settings.MOBILE_MAX_VIEWPORT_WIDTH
