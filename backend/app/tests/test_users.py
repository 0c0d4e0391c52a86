"""
Tests for user profile endpoints.
"""


def test_update_profile(client, signup):
    headers = signup("ana@x.com", name="Ana")
    response = client.put(
        "/api/users/profile",
        json={"name": "Ana Lima", "profile_picture": "https://img/ana.png"},
        headers=headers
    )
    assert response.status_code == 200
    user = response.json()["data"]["user"]
    assert user["name"] == "Ana Lima"
    assert user["profile_picture"] == "https://img/ana.png"

    assert client.put("/api/users/profile", json={"email": "evil@x.com"}, headers=headers).status_code == 400


def test_update_preferences(client, signup):
    headers = signup("ana@x.com")
    response = client.put(
        "/api/users/preferences",
        json={"currency": "eur", "theme": "dark"},
        headers=headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["user"]["preferences"] == {
        "currency": "EUR", "language": "en", "theme": "dark"
    }

    bad = client.put("/api/users/preferences", json={"theme": "neon"}, headers=headers)
    assert bad.status_code == 400


def test_profile_requires_authentication(client):
    assert client.put("/api/users/profile", json={"name": "X"}).status_code == 401
