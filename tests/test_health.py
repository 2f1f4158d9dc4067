def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["trace_id"]


def test_ready_echoes_trace_header(client):
    response = client.get("/ready", headers={"X-Trace-ID": "trace-ready-1"})
    assert response.status_code == 200
    assert response.json() == {"status": "ready", "trace_id": "trace-ready-1"}
    assert response.headers["X-Trace-ID"] == "trace-ready-1"
