import pytest

from lumina.core import llm as llm_module
from lumina.core.config import settings
from lumina.core.llm import get_llm


class CapturingChatModel:
    instances = []

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        CapturingChatModel.instances.append(self)


@pytest.fixture
def capturing_model(monkeypatch):
    CapturingChatModel.instances = []
    monkeypatch.setattr(llm_module, "ChatGoogleGenerativeAI", CapturingChatModel)
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "clave-de-prueba")
    return CapturingChatModel


def test_missing_api_key_returns_none(monkeypatch, capturing_model):
    monkeypatch.setattr(settings, "GEMINI_API_KEY", None)
    assert get_llm() is None
    assert capturing_model.instances == []


def test_client_is_built_with_generation_settings(capturing_model):
    schema = {"type": "object"}
    client = get_llm(response_schema=schema)

    kwargs = client.kwargs
    assert kwargs["model"] == settings.GEMINI_MODEL_NAME
    assert kwargs["thinking_budget"] == settings.GENERATION_THINKING_BUDGET
    assert kwargs["temperature"] == settings.GENERATION_TEMPERATURE
    assert kwargs["n"] == 1
    assert kwargs["response_mime_type"] == "application/json"
    assert kwargs["response_schema"] is schema


def test_without_schema_no_json_mode(capturing_model):
    kwargs = get_llm().kwargs
    assert "response_schema" not in kwargs
    assert "response_mime_type" not in kwargs


def test_cache_is_reused_for_same_parameters(capturing_model):
    first = get_llm(temperature=0.2)
    assert get_llm(temperature=0.2) is first
    assert get_llm(temperature=0.9) is not first
    assert len(capturing_model.instances) == 2


def test_force_reload_builds_new_client(capturing_model):
    first = get_llm()
    assert get_llm(force_reload=True) is not first
