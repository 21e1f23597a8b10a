from conftest import auth_headers, register


def test_update_profile(client, headers):
    response = client.patch(
        "/api/settings/profile",
        json={"name": "Alexandra", "goal_weight": 75, "medication": "MOUNJARO", "current_dosage": 5},
        headers=headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Alexandra"
    assert data["goal_weight"] == 75
    assert data["medication"] == "MOUNJARO"
    assert data["current_dosage"] == 5

    assert client.get("/api/settings", headers=headers).json()["name"] == "Alexandra"


def test_profile_goal_must_stay_below_start(client, headers):
    response = client.patch("/api/settings/profile", json={"goal_weight": 110}, headers=headers)
    assert response.status_code == 400


def test_profile_required_fields_cannot_be_cleared(client, headers):
    response = client.patch("/api/settings/profile", json={"name": None}, headers=headers)
    assert response.status_code == 400


def test_change_email(client, headers):
    register(client, email="taken@example.com")

    taken = client.put("/api/settings/email", json={"email": "TAKEN@example.com"}, headers=headers)
    assert taken.status_code == 409

    changed = client.put("/api/settings/email", json={"email": "new@example.com"}, headers=headers)
    assert changed.status_code == 200
    assert changed.json()["email"] == "new@example.com"

    login = client.post("/api/auth/login", json={"email": "new@example.com", "password": "supersecret"})
    assert login.status_code == 200


def test_change_password(client, headers):
    wrong = client.put(
        "/api/settings/password",
        json={"current_password": "not-mine", "new_password": "evenbetter", "confirm_password": "evenbetter"},
        headers=headers,
    )
    assert wrong.status_code == 400

    mismatch = client.put(
        "/api/settings/password",
        json={"current_password": "supersecret", "new_password": "evenbetter", "confirm_password": "different"},
        headers=headers,
    )
    assert mismatch.status_code == 422

    ok = client.put(
        "/api/settings/password",
        json={"current_password": "supersecret", "new_password": "evenbetter", "confirm_password": "evenbetter"},
        headers=headers,
    )
    assert ok.status_code == 200
    assert client.post(
        "/api/auth/login", json={"email": "alex@example.com", "password": "evenbetter"}
    ).status_code == 200


def test_pen_dosing_defaults_and_microdose(client, headers):
    defaults = client.get("/api/settings/pen-dosing", headers=headers).json()
    assert defaults == {
        "dosing_mode": "STANDARD",
        "pen_strength_mg": None,
        "dose_amount_mg": None,
        "doses_per_pen": 4,
        "tracks_golden_dose": False,
        "current_dose_in_pen": 1,
    }

    incomplete = client.put("/api/settings/pen-dosing", json={"dosing_mode": "MICRODOSE"}, headers=headers)
    assert incomplete.status_code == 400

    micro = client.put(
        "/api/settings/pen-dosing",
        json={"dosing_mode": "MICRODOSE", "pen_strength_mg": 2.4, "dose_amount_mg": 0.6, "tracks_golden_dose": True},
        headers=headers,
    )
    assert micro.status_code == 200
    assert micro.json()["doses_per_pen"] == 4
    assert micro.json()["tracks_golden_dose"] is True

    status = client.get("/api/injections/status", headers=headers).json()
    assert status["doses_per_pen"] == 4
    assert status["tracks_golden_dose"] is True


def test_pen_dosing_rejects_dose_larger_than_pen(client, headers):
    response = client.put(
        "/api/settings/pen-dosing",
        json={"dosing_mode": "MICRODOSE", "pen_strength_mg": 0.5, "dose_amount_mg": 1.0},
        headers=headers,
    )
    assert response.status_code == 400

    settings = client.get("/api/settings/pen-dosing", headers=headers).json()
    assert settings["dosing_mode"] == "STANDARD"
    assert settings["doses_per_pen"] == 4

    client.post("/api/injections", json={}, headers=headers)
    assert client.get("/api/injections", headers=headers).json()[0]["dose_number"] == 1


def test_golden_dose_can_be_logged(client, headers):
    client.put("/api/settings/pen-dosing", json={"tracks_golden_dose": True}, headers=headers)
    assert client.post("/api/injections", json={"dose_number": 5}, headers=headers).status_code == 201

    status = client.get("/api/injections/status", headers=headers).json()
    assert status["is_on_golden_dose"] is True
    assert status["next_dose"] == 1


def test_export_contains_all_user_data(client, headers):
    client.post("/api/weigh-ins", json={"weight": 92}, headers=headers)
    client.post("/api/injections", json={}, headers=headers)
    client.patch("/api/habits/today", json={"habit": "water", "value": True}, headers=headers)

    response = client.get("/api/settings/export", headers=headers)
    assert response.status_code == 200
    assert response.headers["content-disposition"] == 'attachment; filename="needled-export-2025-01-22.json"'

    data = response.json()
    assert data["exported_at"] == "2025-01-22T10:00:00"
    assert data["profile"]["email"] == "alex@example.com"
    assert "password_hash" not in data["profile"]
    assert "expo_push_token" not in data["profile"]
    assert len(data["weigh_ins"]) == 1
    assert len(data["injections"]) == 1
    assert data["habits"] == [{"date": "2025-01-22", "water": True, "nutrition": False, "exercise": False}]
    assert data["notification_preferences"]["reminder_time"] == "09:00"


def test_delete_account(client, headers):
    client.post("/api/weigh-ins", json={"weight": 92}, headers=headers)
    client.post("/api/injections", json={}, headers=headers)

    wrong = client.request("DELETE", "/api/settings/account", json={"password": "nope-nope"}, headers=headers)
    assert wrong.status_code == 400

    response = client.request("DELETE", "/api/settings/account", json={"password": "supersecret"}, headers=headers)
    assert response.status_code == 200
    assert response.json() == {"message": "Account deleted successfully"}

    assert client.get("/api/auth/session", headers=headers).status_code == 401
    login = client.post("/api/auth/login", json={"email": "alex@example.com", "password": "supersecret"})
    assert login.status_code == 401

    # The address is free again
    assert register(client)["user"]["email"] == "alex@example.com"


def test_other_accounts_survive_deletion(client, headers):
    other = auth_headers(register(client, email="jo@example.com"))
    client.post("/api/weigh-ins", json={"weight": 88}, headers=other)

    client.request("DELETE", "/api/settings/account", json={"password": "supersecret"}, headers=headers)

    assert len(client.get("/api/weigh-ins", headers=other).json()) == 1
