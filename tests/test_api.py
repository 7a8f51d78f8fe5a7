import pytest
from fastapi.testclient import TestClient

from lumina.core.config import settings
from lumina.main import app
from lumina.orchestration.session_machine import MSG_BUDGET_EXCEEDED, SessionOrchestrator
from lumina.core.errors import BudgetExceededError
from lumina.rendering.render_surface import SANDBOX_POLICY


@pytest.fixture
def client(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "RENDER_DIR", str(tmp_path / "render"))
    monkeypatch.setattr(settings, "GEMINI_API_KEY", None)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def install_generator(client, fake_generator):
    """Sustituye la sesión de la app por una con un generador falso."""
    def _install(results=None):
        generator = fake_generator(results)
        app.state.session = SessionOrchestrator(generator=generator, render_surface=app.state.render_surface)
        generator.session = app.state.session.session
        return generator
    return _install


def _upload(client, sample_pdf, content_type="application/pdf", **data):
    return client.post("/api/upload", files={"file": ("paper.pdf", sample_pdf, content_type)}, data=data)


def test_root(client):
    assert client.get("/").status_code == 200


def test_initial_status_is_idle(client):
    body = client.get("/api/status").json()
    assert body["phase"] == "idle"
    assert body["has_payload"] is False
    assert body["render_url"].startswith("/api/render/")
    assert body["model_name"] == settings.GEMINI_MODEL_NAME


def test_upload_non_pdf_is_rejected(client, install_generator, sample_pdf):
    generator = install_generator()
    response = _upload(client, b"hola", content_type="text/plain")
    assert response.status_code == 400
    assert generator.calls == []
    assert client.get("/api/status").json()["phase"] == "idle"


def test_upload_generates_visualization(client, install_generator, sample_pdf):
    generator = install_generator()
    response = _upload(client, sample_pdf, instruction="KV Cache")

    assert response.status_code == 200
    body = response.json()
    assert body["phase"] == "completed"
    assert body["file_name"] == "paper.pdf"
    assert body["title"] == "Attention Is All You Need"
    assert body["has_payload"] is True
    assert body["error"] is None
    assert generator.calls[0][1] == "KV Cache"


def test_generation_failure_is_reported_in_body(client, install_generator, sample_pdf):
    install_generator([BudgetExceededError("thinking_budget")])
    response = _upload(client, sample_pdf)
    assert response.status_code == 200
    body = response.json()
    assert body["phase"] == "error"
    assert body["error"] == MSG_BUDGET_EXCEEDED


def test_render_serves_current_document_sandboxed(client, install_generator, sample_pdf):
    install_generator()
    body = _upload(client, sample_pdf).json()

    response = client.get(body["render_url"])
    assert response.status_code == 200
    assert response.text == "<html>v1</html>"
    assert response.headers["content-security-policy"] == SANDBOX_POLICY


def test_stale_render_token_is_not_found(client, install_generator, sample_pdf):
    install_generator()
    idle_url = client.get("/api/status").json()["render_url"]
    _upload(client, sample_pdf)
    assert client.get(idle_url).status_code == 404


def test_refine_with_blank_instruction_is_unprocessable(client, install_generator, sample_pdf):
    install_generator()
    _upload(client, sample_pdf)
    assert client.post("/api/refine", json={"instruction": "   "}).status_code == 422


def test_refine_without_document_is_conflict(client, install_generator):
    install_generator()
    assert client.post("/api/refine", json={"instruction": "más detalle"}).status_code == 409


def test_refine_regenerates(client, install_generator, sample_pdf):
    generator = install_generator([
        {"title": "Original", "html": "<html>v1</html>"},
        {"title": "Refinada", "html": "<html>v2</html>"},
    ])
    _upload(client, sample_pdf)
    body = client.post("/api/refine", json={"instruction": "más detalle"}).json()
    assert body["phase"] == "completed"
    assert body["title"] == "Refinada"
    assert generator.calls[1][1] == "más detalle"


def test_instruction_is_stored_as_pending(client, install_generator):
    install_generator()
    body = client.put("/api/instruction", json={"instruction": "  memoria  "}).json()
    assert body["pending_instruction"] == "memoria"


def test_download_returns_attachment(client, install_generator, sample_pdf):
    install_generator([{"title": "Attention Is All You Need", "html": "<html>v1</html>"}])
    _upload(client, sample_pdf)

    response = client.get("/api/download")
    assert response.status_code == 200
    assert response.text == "<html>v1</html>"
    assert response.headers["content-type"].startswith("text/html")
    assert response.headers["content-disposition"] == 'attachment; filename="attention_is_all_you_need.html"'


def test_download_without_artifact_is_not_found(client):
    assert client.get("/api/download").status_code == 404


def test_reset_returns_to_idle(client, install_generator, sample_pdf):
    install_generator()
    _upload(client, sample_pdf)
    body = client.post("/api/reset").json()
    assert body["phase"] == "idle"
    assert body["file_name"] is None
    assert body["has_payload"] is False


def test_reset_from_error_returns_to_idle(client, install_generator, sample_pdf):
    install_generator([BudgetExceededError("thinking_budget")])
    assert _upload(client, sample_pdf).json()["phase"] == "error"

    body = client.post("/api/reset").json()
    assert body["phase"] == "idle"
    assert body["error"] is None
    assert body["has_payload"] is False


def test_new_upload_from_error_generates_again(client, install_generator, sample_pdf):
    generator = install_generator([
        BudgetExceededError("thinking_budget"),
        {"title": "Segundo intento", "html": "<html>v2</html>"},
    ])
    assert _upload(client, sample_pdf).json()["phase"] == "error"

    response = client.post("/api/upload", files={"file": ("otro.pdf", sample_pdf + b"%extra", "application/pdf")})
    body = response.json()
    assert body["phase"] == "completed"
    assert body["file_name"] == "otro.pdf"
    assert body["title"] == "Segundo intento"
    assert generator.calls[0][0] != generator.calls[1][0]
