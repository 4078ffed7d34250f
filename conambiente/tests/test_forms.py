# conambiente/tests/test_forms.py
PDF = b"%PDF-1.4\n%test\n"


def _pqr(**overrides):
    data = {
        "nombreCompleto": "Ana Pérez",
        "email": "ana@example.com",
        "tipo": "Queja",
        "mensaje": "Línea 1\nLínea 2",
        "aceptaTratamientoDatos": True,
    }
    data.update(overrides)
    return data


def _application(**overrides):
    data = {
        "nombreCompleto": "Luis Gómez",
        "email": "luis@example.com",
        "cargo": "Ingeniero ambiental",
        "profesion": "Ingeniero",
    }
    data.update(overrides)
    return data


def test_contact_sends_to_contact_recipient(client, mailer, settings):
    r = client.post("/api/contacto", json={"nombre": "Ana", "email": "ana@example.com", "mensaje": "Hola\nmundo"})
    assert r.status_code == 200
    assert r.json() == {"ok": True, "message": "Mensaje enviado correctamente."}

    assert len(mailer.sent) == 1
    sent = mailer.sent[0]
    assert sent["to"] == settings.mail_to_contact
    assert sent["subject"] == "Contacto web: Sin asunto"
    assert "Hola<br>mundo" in sent["html"]
    assert "Teléfono: No proporcionado" in sent["text"]


def test_contact_missing_fields(client, mailer):
    r = client.post("/api/contacto", json={"nombre": "Ana", "email": "ana@example.com"})
    assert r.status_code == 400
    assert r.json() == {"message": "Faltan campos obligatorios (nombre, email, mensaje)"}
    assert mailer.sent == []


def test_contact_escapes_html(client, mailer):
    client.post("/api/contacto", json={"nombre": "<script>x</script>", "email": "a@b.co", "mensaje": "m"})
    assert "<script>" not in mailer.sent[0]["html"]


def test_pqr_without_consent_sends_nothing(client, mailer):
    r = client.post("/api/pqr", json=_pqr(aceptaTratamientoDatos=False))
    assert r.status_code == 400
    assert r.json() == {"message": "Debes aceptar el tratamiento de datos."}
    assert mailer.sent == []

    r = client.post("/api/pqr", data=_pqr(aceptaTratamientoDatos="false"))
    assert r.status_code == 400
    assert mailer.sent == []


def test_pqr_missing_fields(client, mailer):
    data = _pqr()
    del data["tipo"]
    r = client.post("/api/pqr", json=data)
    assert r.status_code == 400
    assert mailer.sent == []


def test_pqr_sent_with_consent(client, mailer, settings):
    r = client.post("/api/pqr", json=_pqr(asunto="Ruido"))
    assert r.status_code == 200
    assert r.json() == {"ok": True, "message": "PQR enviada correctamente."}
    sent = mailer.sent[0]
    assert sent["to"] == settings.mail_to_pqr
    assert sent["subject"] == "Nueva Queja recibida desde PQR: Ruido"
    assert "<strong>ACEPTÓ</strong>" in sent["html"]


def test_mail_failure_returns_500(client, mailer):
    mailer.fail_for.add("*")
    r = client.post("/api/pqr", json=_pqr())
    assert r.status_code == 500
    assert r.json() == {"ok": False, "message": "Error al enviar la PQR."}


def test_job_application_requires_cv(client, mailer):
    r = client.post("/api/trabaja-nosotros", data=_application())
    assert r.status_code == 400
    assert r.json() == {"message": "Debes adjuntar tu hoja de vida (CV)."}
    assert mailer.sent == []


def test_job_application_rejects_executable_cv(client, mailer):
    r = client.post("/api/trabaja-nosotros", data=_application(),
                    files={"cv": ("cv.exe", b"MZ\x90\x00", "application/x-msdownload")})
    assert r.status_code == 415
    assert r.json() == {"message": "Formato de CV no permitido (solo PDF o Word)"}
    assert mailer.sent == []


def test_job_application_rejects_image_as_cv(client):
    r = client.post("/api/trabaja-nosotros", data=_application(),
                    files={"cv": ("foto.png", b"\x89PNG", "image/png")})
    assert r.status_code == 415


def test_job_application_attaches_cv(client, mailer, settings):
    r = client.post("/api/trabaja-nosotros", data=_application(telefono="3001234567"),
                    files={"cv": ("hoja_de_vida.pdf", PDF, "application/pdf")})
    assert r.status_code == 200
    assert r.json() == {"ok": True, "message": "Postulación enviada correctamente."}
    sent = mailer.sent[0]
    assert sent["to"] == settings.mail_to_work
    assert sent["attachments"] == ["hoja_de_vida.pdf"]
    assert sent["subject"] == "Nuevo candidato: Luis Gómez - Cargo: Ingeniero ambiental"


def test_job_application_missing_fields(client, mailer):
    data = _application()
    del data["profesion"]
    r = client.post("/api/trabaja-nosotros", data=data,
                    files={"cv": ("hoja_de_vida.pdf", PDF, "application/pdf")})
    assert r.status_code == 400
    assert mailer.sent == []
