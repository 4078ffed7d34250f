# conambiente/tests/test_api_basic.py

def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    j = r.json()
    assert j["status"] == "ok"
    assert isinstance(j["ts"], int)


def test_root_banner(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.text == "API de Conambiente funcionando"


def test_startup_refuses_missing_admin_credentials(app, settings):
    import pytest
    from fastapi.testclient import TestClient

    settings.admin_password = None
    with pytest.raises(RuntimeError, match="ADMIN_PASSWORD"):
        with TestClient(app):
            pass
