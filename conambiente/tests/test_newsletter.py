# conambiente/tests/test_newsletter.py
from conambiente.notifier.newsletter import Newsletter
from conambiente.storage.models import News


def test_subscribe_new_email(client, db):
    r = client.post("/api/boletin/suscribir", json={"email": "nuevo@example.com"})
    assert r.status_code == 200
    assert r.json() == {"ok": True, "message": "Suscripción exitosa."}

    docs = list(db["suscriptores"].find({"email": "nuevo@example.com"}))
    assert len(docs) == 1
    assert docs[0]["activo"] is True


def test_subscribe_twice_creates_no_duplicate(client, db):
    client.post("/api/boletin/suscribir", json={"email": "dos@example.com"})
    r = client.post("/api/boletin/suscribir", json={"email": " Dos@Example.com "})
    assert r.status_code == 200
    assert r.json()["message"] == "Ya estabas suscrito."
    assert db["suscriptores"].count_documents({}) == 1


def test_unsubscribe_then_resubscribe_reactivates_same_record(client, db):
    client.post("/api/boletin/suscribir", json={"email": "vuelve@example.com"})
    original_id = db["suscriptores"].find_one({"email": "vuelve@example.com"})["_id"]

    r = client.post("/api/boletin/desuscribir", json={"email": "vuelve@example.com"})
    assert r.json() == {"ok": True, "message": "Te has desuscrito correctamente."}
    doc = db["suscriptores"].find_one({"email": "vuelve@example.com"})
    assert doc["activo"] is False  # baja lógica, no borrado

    r = client.post("/api/boletin/suscribir", data={"email": "vuelve@example.com"})
    assert r.json()["ok"] is True
    docs = list(db["suscriptores"].find({"email": "vuelve@example.com"}))
    assert len(docs) == 1
    assert docs[0]["_id"] == original_id
    assert docs[0]["activo"] is True


def test_unsubscribe_unknown_email(client):
    r = client.post("/api/boletin/desuscribir", json={"email": "nadie@example.com"})
    assert r.status_code == 200
    assert r.json() == {"ok": True, "message": "No estabas suscrito."}


def test_email_required(client):
    r = client.post("/api/boletin/suscribir", json={})
    assert r.status_code == 400
    assert r.json() == {"message": "Email requerido"}


def _news(**kw):
    data = dict(id="abc", titulo="Título <b>", resumen="Resumen", contenido="...", fecha="hoy")
    data.update(kw)
    return News(**data)


def test_broadcast_isolates_failing_recipient(mailer):
    subscribers = [{"email": "a@example.com"}, {"email": "falla@example.com"}, {"email": "c@example.com"}]
    mailer.fail_for.add("falla@example.com")
    newsletter = Newsletter(mailer, lambda: subscribers, "https://conambiente.com")

    result = newsletter.broadcast(_news())
    assert result == {"status": "sent", "count": 2, "failed": 1}
    assert [m["to"] for m in mailer.sent] == ["a@example.com", "c@example.com"]


def test_broadcast_without_subscribers_is_noop(mailer):
    newsletter = Newsletter(mailer, lambda: [], "https://conambiente.com")
    assert newsletter.broadcast(_news())["status"] == "no_subscribers"
    assert mailer.sent == []


def test_broadcast_only_reaches_active_subscribers(client, admin_headers, scheduler, mailer):
    client.post("/api/boletin/suscribir", json={"email": "activo@example.com"})
    client.post("/api/boletin/suscribir", json={"email": "baja@example.com"})
    client.post("/api/boletin/desuscribir", json={"email": "baja@example.com"})

    client.post("/api/noticias", headers=admin_headers,
                data={"titulo": "T", "resumen": "R", "contenido": "C", "fecha": "F"})
    scheduler.run_all()
    assert [m["to"] for m in mailer.sent] == ["activo@example.com"]


def test_email_html_uses_absolute_image_url(mailer):
    newsletter = Newsletter(mailer, lambda: [], "https://conambiente.com/")
    body = newsletter.render_email_html(_news(imagenUrl="/uploads/123-4.png"))
    assert 'src="https://conambiente.com/uploads/123-4.png"' in body
    assert "Título &lt;b&gt;" in body
    assert "<strong>Fecha:</strong> hoy" in body

    assert "<img" not in newsletter.render_email_html(_news())


def test_broadcast_safely_never_raises(mailer):
    def broken():
        raise RuntimeError("mongo caído")

    newsletter = Newsletter(mailer, broken, "https://conambiente.com")
    assert newsletter.broadcast_safely(_news()) is None
