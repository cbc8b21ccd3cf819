# tests/api/test_settings.py
from catalogue.config import settings


def test_recipient_email_default(client):
    response = client.get("/api/settings/recipient-email")

    assert response.status_code == 200
    assert response.json() == {"recipient_email": settings.DEFAULT_RECIPIENT_EMAIL}


def test_update_recipient_email(client):
    response = client.put("/api/settings/recipient-email", json={"recipient_email": " orders@shop.example "})

    assert response.status_code == 200
    assert response.json() == {"recipient_email": "orders@shop.example"}
    assert client.get("/api/settings/recipient-email").json() == {"recipient_email": "orders@shop.example"}

    response = client.put("/api/settings/recipient-email", json={"recipient_email": "sales@shop.example"})
    assert response.json() == {"recipient_email": "sales@shop.example"}


def test_update_recipient_email_rejects_invalid(client):
    response = client.put("/api/settings/recipient-email", json={"recipient_email": "not an email"})
    assert response.status_code == 422
