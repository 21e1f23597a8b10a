def _tick_all(client, headers, day=None):
    for habit in ("water", "nutrition", "exercise"):
        payload = {"habit": habit, "value": True}
        if day:
            payload["date"] = day
        assert client.patch("/api/habits/today", json=payload, headers=headers).status_code == 200


def test_today_is_created_on_first_read(client, headers):
    data = client.get("/api/habits/today", headers=headers).json()
    assert data["date"] == "2025-01-22"
    assert (data["water"], data["nutrition"], data["exercise"]) == (False, False, False)

    again = client.get("/api/habits/today", headers=headers).json()
    assert again["id"] == data["id"]


def test_toggle_and_untoggle(client, headers):
    on = client.patch("/api/habits/today", json={"habit": "water", "value": True}, headers=headers).json()
    assert on["water"] is True
    assert on["exercise"] is False

    off = client.patch("/api/habits/today", json={"habit": "water", "value": False}, headers=headers).json()
    assert off["water"] is False
    assert off["id"] == on["id"]


def test_unknown_habit_is_rejected(client, headers):
    response = client.patch("/api/habits/today", json={"habit": "sleep", "value": True}, headers=headers)
    assert response.status_code == 422


def test_backdated_toggle_and_range_listing(client, headers):
    client.patch("/api/habits/today", json={"habit": "exercise", "value": True, "date": "2025-01-20"}, headers=headers)
    client.patch("/api/habits/today", json={"habit": "water", "value": True}, headers=headers)
    client.patch("/api/habits/today", json={"habit": "water", "value": True, "date": "2025-01-10"}, headers=headers)

    week = client.get("/api/habits", headers=headers).json()
    assert [h["date"] for h in week] == ["2025-01-20", "2025-01-22"]

    ranged = client.get(
        "/api/habits", params={"start_date": "2025-01-01", "end_date": "2025-01-31"}, headers=headers
    ).json()
    assert len(ranged) == 3

    inverted = client.get(
        "/api/habits", params={"start_date": "2025-01-31", "end_date": "2025-01-01"}, headers=headers
    )
    assert inverted.status_code == 400


def test_future_habit_date_rejected(client, headers):
    response = client.patch(
        "/api/habits/today", json={"habit": "water", "value": True, "date": "2025-01-25"}, headers=headers
    )
    assert response.status_code == 400


def test_calendar_month_with_streak(client, headers):
    _tick_all(client, headers, "2025-01-21")
    _tick_all(client, headers)
    client.post("/api/weigh-ins", json={"weight": 92}, headers=headers)
    client.post("/api/injections", json={"site": "THIGH_LEFT"}, headers=headers)

    data = client.get("/api/calendar/2025/1", headers=headers).json()
    assert data["year"] == 2025
    assert data["month"] == 1
    assert [h["date"] for h in data["habits"]] == ["2025-01-21", "2025-01-22"]
    assert data["weigh_ins"] == [{"date": "2025-01-22", "weight": 92}]
    assert data["injections"] == [{"date": "2025-01-22", "site": "THIGH_LEFT"}]
    assert data["streaks"]["current_streak"] == 2
    assert data["streaks"]["best_streak"] == 2
    assert data["streaks"]["streak_days"] == {"2025-01-21": 1, "2025-01-22": 2}


def test_calendar_other_month_is_empty_but_keeps_streaks(client, headers):
    _tick_all(client, headers, "2025-01-21")
    _tick_all(client, headers)

    data = client.get("/api/calendar/2024/12", headers=headers).json()
    assert data["habits"] == []
    assert data["streaks"]["current_streak"] == 2
    assert data["streaks"]["streak_days"] == {}


def test_calendar_month_validation(client, headers):
    assert client.get("/api/calendar/2025/13", headers=headers).status_code == 422


def test_calendar_day_detail(client, headers):
    client.post("/api/weigh-ins", json={"weight": 95, "date": "2025-01-15"}, headers=headers)
    client.post("/api/weigh-ins", json={"weight": 93.5}, headers=headers)
    client.post("/api/injections", json={"notes": "left side"}, headers=headers)
    client.patch("/api/habits/today", json={"habit": "nutrition", "value": True}, headers=headers)

    data = client.get("/api/calendar/day/2025-01-22", headers=headers).json()
    assert data["date"] == "2025-01-22"
    assert data["habit"] == {"water": False, "nutrition": True, "exercise": False}
    assert data["weigh_in"] == {"weight": 93.5, "change": -1.5}
    assert data["injection"]["site"] == "ABDOMEN_LEFT"
    assert data["injection"]["notes"] == "left side"

    empty = client.get("/api/calendar/day/2025-01-10", headers=headers).json()
    assert empty["habit"] is None
    assert empty["weigh_in"] is None
    assert empty["injection"] is None
