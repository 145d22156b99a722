import pytest

from adwaste.core.config import Settings
from adwaste.jobs import run_query_server


@pytest.fixture(autouse=True)
def reset_executor(monkeypatch):
    submitted = {}

    class DummyExecutor:
        def submit(self, fn, args):
            submitted["called"] = True
            submitted["args"] = args

    monkeypatch.setattr(run_query_server, "_executor", DummyExecutor())
    monkeypatch.setattr(run_query_server, "run_scrape", lambda **kwargs: submitted.update(job=kwargs))
    monkeypatch.setattr(run_query_server, "get_settings", lambda: Settings())
    yield submitted


def test_health_endpoint(reset_executor):
    client = run_query_server.app.test_client()
    response = client.get("/healthz")
    assert response.status_code == 200
    body = response.get_json()
    assert body["status"] == "ok"
    assert body["tracked_domain"] == "www.oui.sncf"


def test_enqueue_scrape_validates_payload(reset_executor):
    client = run_query_server.app.test_client()
    assert client.post("/scrape", json={}).status_code == 400
    assert client.post("/scrape", json={"keywords": "  "}).status_code == 400
    assert client.post("/scrape", json={"keywords": "train", "device": "tablet"}).status_code == 400
    assert client.post("/scrape", json={"keywords": "train", "timeout": "bad"}).status_code == 400
    assert client.post("/scrape", json={"keywords": "train", "timeout": -1}).status_code == 400
    assert "called" not in reset_executor


def test_enqueue_scrape_passes_params(reset_executor):
    client = run_query_server.app.test_client()
    response = client.post("/scrape", json={"keywords": " billet train ", "device": "mobile", "timeout": 12})

    assert response.status_code == 202
    assert response.get_json()["data"]["status"] == "queued"
    assert reset_executor["called"] is True
    assert reset_executor["args"] == {"keywords": "billet train", "device": "mobile", "timeout": 12.0}


def test_run_job_safe_logs_failures(monkeypatch, caplog):
    def fail(**kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(run_query_server, "run_scrape", fail)

    with caplog.at_level("ERROR"):
        run_query_server._run_job_safe({"keywords": "train"})

    assert "Scrape job failed" in " ".join(caplog.messages)
