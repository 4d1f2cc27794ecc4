from tutorslot.api.routes import health


def test_health_endpoints(client, engine, monkeypatch):
    monkeypatch.setattr(health, "engine", engine)

    live = client.get("/api/health/live")
    assert live.status_code == 200
    assert live.json()["status"] == "ok"

    ready = client.get("/api/health/ready")
    assert ready.status_code == 200
    payload = ready.json()
    assert payload["database"]["ok"] is True
    assert payload["database"]["schema_ok"] is True
    assert payload["database"]["class_type_count"] == 4


def test_health_ready_reports_missing_tables(client, engine, monkeypatch):
    monkeypatch.setattr(health, "engine", engine)
    with engine.begin() as connection:
        connection.exec_driver_sql("DROP TABLE class_status_logs")

    ready = client.get("/api/health/ready")

    assert ready.status_code == 503
    assert ready.json()["database"]["missing_tables"] == ["class_status_logs"]
