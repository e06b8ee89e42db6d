from fastapi.testclient import TestClient

from hello_service import server


def test_root_returns_greeting():
    client = TestClient(server.create_app())

    response = client.get("/")

    assert response.status_code == 200
    assert response.text == "Hello, world!"
    assert response.headers["content-type"].startswith("text/plain")


def test_health():
    client = TestClient(server.create_app())
    assert client.get("/health").json() == {"status": "ok"}


def test_unknown_route_is_404():
    client = TestClient(server.create_app())
    assert client.get("/missing").status_code == 404


def test_main_reads_port_and_host(monkeypatch):
    calls = {}

    def fake_run(app, host, port, log_level):
        calls.update(host=host, port=port, log_level=log_level)

    monkeypatch.setattr(server.uvicorn, "run", fake_run)
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("HOST", "127.0.0.1")

    server.main()

    assert calls == {"host": "127.0.0.1", "port": 8080, "log_level": "info"}


def test_run_defaults_to_port_80(monkeypatch):
    calls = {}
    monkeypatch.setattr(server.uvicorn, "run", lambda app, **kw: calls.update(kw))

    server.run()

    assert calls["port"] == 80
    assert calls["host"] == "0.0.0.0"
