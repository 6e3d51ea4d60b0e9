from fastapi import status

from reviewhub.schemas.ai_settings import DEFAULT_POSITIVE_PROMPT


def test_requires_authentication(client):
    assert client.get("/api/ai-settings").status_code == status.HTTP_401_UNAUTHORIZED


def test_defaults_when_nothing_saved(client, auth_headers):
    body = client.get("/api/ai-settings", headers=auth_headers).json()

    assert body["is_default"] is True
    assert body["settings"]["auto_reply_enabled"] is False
    assert body["settings"]["auto_reply_delay_minutes"] == 60
    assert body["settings"]["positive_review_prompt"] == DEFAULT_POSITIVE_PROMPT


def test_save_and_read_back(client, auth_headers):
    payload = {
        "storeId": "store-1",
        "auto_reply_enabled": True,
        "auto_reply_delay_minutes": 30,
        "business_hours_start": "10:00",
        "business_hours_end": "20:00",
        "auto_reply_min_rating": 3,
    }

    saved = client.post("/api/ai-settings", json=payload, headers=auth_headers)
    assert saved.status_code == status.HTTP_200_OK
    assert saved.json()["message"] == "AI settings saved"

    body = client.get("/api/ai-settings?storeId=store-1", headers=auth_headers).json()
    assert body["is_default"] is False
    assert body["settings"]["auto_reply_delay_minutes"] == 30
    assert body["settings"]["business_hours_start"] == "10:00"
    assert body["settings"]["auto_reply_min_rating"] == 3


def test_invalid_business_hours_rejected(client, auth_headers):
    response = client.post("/api/ai-settings", json={"business_hours_start": "9:00"}, headers=auth_headers)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_min_rating_above_max_rejected(client, auth_headers):
    response = client.post(
        "/api/ai-settings",
        json={"auto_reply_min_rating": 5, "auto_reply_max_rating": 3},
        headers=auth_headers,
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_delete(client, auth_headers):
    client.post("/api/ai-settings", json={"auto_reply_enabled": True}, headers=auth_headers)

    assert client.delete("/api/ai-settings", headers=auth_headers).status_code == status.HTTP_200_OK
    missing = client.delete("/api/ai-settings", headers=auth_headers)
    assert missing.status_code == status.HTTP_404_NOT_FOUND
    assert missing.json()["detail"] == "Settings not found"
