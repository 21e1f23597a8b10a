from needled import jobs_state
from needled.core.settings import get_settings


def _configure_secret(monkeypatch, secret="cron-secret-value"):
    monkeypatch.setenv("CRON_SECRET", secret)
    get_settings.cache_clear()


def test_cron_without_configured_secret_is_server_error(client):
    response = client.post("/api/cron/notifications", headers={"Authorization": "Bearer anything"})
    assert response.status_code == 500


def test_cron_rejects_wrong_secret(client, monkeypatch):
    _configure_secret(monkeypatch)

    assert client.post("/api/cron/notifications").status_code == 401
    assert client.post(
        "/api/cron/notifications", headers={"Authorization": "Bearer wrong"}
    ).status_code == 401


def test_cron_runs_reminder_pass(client, headers, monkeypatch):
    _configure_secret(monkeypatch)
    jobs_state.reset_states()

    # Wednesday 10:00 UTC is outside the default 09:00 reminder hour
    response = client.post("/api/cron/notifications", headers={"Authorization": "Bearer cron-secret-value"})
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["total_sent"] == 0
    assert data["breakdown"] == {"injection_reminders": 0, "weigh_in_reminders": 0, "habit_reminders": 0}
    assert data["errors"] is None

    state = jobs_state.get_all_states()["reminders"]
    assert state["last_ok"] is True
    assert state["last_run_at"] is not None
    assert state["last_trigger"] == "cron"
    assert state["last_sent"] == 0
