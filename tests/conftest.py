import json
from typing import Any, List, Optional

import pytest
from langchain_core.messages import AIMessage

from lumina.core import llm as llm_module

SAMPLE_PDF = b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n<< /Root 1 0 R >>\n%%EOF\n"


class FakeChatModel:
    """Sustituye a ChatGoogleGenerativeAI: registra los mensajes y devuelve una respuesta fija."""

    def __init__(self, content: Any = None, error: Optional[BaseException] = None):
        self.content = content
        self.error = error
        self.calls: List[list] = []

    async def ainvoke(self, messages):
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return AIMessage(content=self.content)


class FakeGenerator:
    """Generador inyectable en el orquestador: registra (payload, instrucción) de cada llamada."""

    def __init__(self, results=None):
        # Cada elemento es un dict {title, html} o una excepción a lanzar
        self.results = list(results or [{"title": "Attention Is All You Need", "html": "<html>v1</html>"}])
        self.calls = []
        self.status_at_call = []
        self.session = None

    async def __call__(self, encoded_payload, instruction, on_progress=None):
        self.calls.append((encoded_payload, instruction))
        if self.session is not None:
            self.status_at_call.append(self.session.status_message)
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, BaseException):
            raise result
        return result


class CountingEncoder:
    def __init__(self, payload: str = "JVBERi0xLjQK"):
        self.payload = payload
        self.calls = 0

    async def __call__(self, source):
        self.calls += 1
        return self.payload


@pytest.fixture
def sample_pdf() -> bytes:
    return SAMPLE_PDF


@pytest.fixture
def fake_chat_model():
    def _factory(content: Any = None, error: Optional[BaseException] = None) -> FakeChatModel:
        return FakeChatModel(content=content, error=error)
    return _factory


@pytest.fixture
def visualization_json():
    def _factory(title: str = "MemGPT", html: str = "<!DOCTYPE html><html><body>ok</body></html>") -> str:
        return json.dumps({"title": title, "html": html})
    return _factory


@pytest.fixture
def fake_generator():
    return FakeGenerator


@pytest.fixture
def counting_encoder():
    return CountingEncoder()


@pytest.fixture(autouse=True)
def reset_llm_cache():
    """Cada test parte sin LLM cacheado."""
    llm_module._llm_client = None
    llm_module._llm_client_params = {}
    yield
    llm_module._llm_client = None
    llm_module._llm_client_params = {}
