# lumina/agents/visualizer_agent.py
import json
import logging
from typing import Any, Callable, Dict, Optional

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage

from lumina.core.config import ACCEPTED_UPLOAD_TYPE
from lumina.core.errors import (
    BudgetExceededError,
    EmptyGenerationError,
    GenerationError,
    InvalidInputError,
)
from lumina.core.llm import get_llm
from lumina.agents.prompts.visualizer_prompt import RESPONSE_SCHEMA, build_instructions
from lumina.utils.json_parser import clean_code_block, extract_json

logger = logging.getLogger(__name__)

ProgressSink = Callable[[str], None]

DEFAULT_TITLE = "Visualización del artículo"

# El servicio no da un código estructurado para este caso: se detecta por el texto del error
BUDGET_EXCEEDED_MARKER = "thinking_budget"

PROGRESS_READING = "Leyendo el artículo y desmontando su lógica..."
PROGRESS_SIMULATING = "Analizando la arquitectura y simulando la mecánica..."


def classify_generation_error(error: BaseException) -> GenerationError:
    """
    Convierte cualquier excepción de la llamada remota en un GenerationError.
    Único punto donde se aplica la heurística de presupuesto excedido.
    """
    if isinstance(error, GenerationError):
        return error
    message = str(error)
    if BUDGET_EXCEEDED_MARKER in message:
        return BudgetExceededError(message, cause=error)
    return GenerationError(message, cause=error)


def _report_progress(on_progress: Optional[ProgressSink], message: str) -> None:
    """Invoca el callback de progreso; un fallo del callback nunca rompe la generación."""
    if on_progress is None:
        return
    try:
        on_progress(message)
    except Exception as e:
        logger.warning(f"El callback de progreso falló con '{message}': {e}")


def build_request(encoded_payload: str, instruction: str = "") -> HumanMessage:
    """Mensaje multimodal: el PDF como datos binarios en línea + el texto de instrucciones."""
    return HumanMessage(content=[
        {
            "type": "file",
            "source_type": "base64",
            "mime_type": ACCEPTED_UPLOAD_TYPE,
            "data": encoded_payload,
        },
        {
            "type": "text",
            "text": build_instructions(instruction),
        },
    ])


def _response_text(content: Any) -> str:
    """Junta el texto de la respuesta (string o lista de partes)."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type", "text") == "text":
                parts.append(part.get("text", ""))
        return "".join(parts)
    return ""


def parse_visualization(content: Any) -> Dict[str, str]:
    """Parsea la salida estructurada del modelo a {'title', 'html'}."""
    text = _response_text(content)
    logger.debug(f"Respuesta cruda del modelo (primeros 300 chars): {text[:300]}")

    try:
        result = json.loads(text or "{}")
    except json.JSONDecodeError as e:
        json_str = extract_json(text)
        if json_str is None:
            raise GenerationError(f"La respuesta del modelo no es JSON válido: {e}", cause=e) from e
        result = json.loads(json_str)

    if not isinstance(result, dict):
        raise GenerationError(f"Se esperaba un objeto JSON, se obtuvo {type(result).__name__}.")

    html = result.get("html")
    if not isinstance(html, str) or not html.strip():
        raise EmptyGenerationError("Gemini generó una respuesta vacía.")

    title = result.get("title")
    if not isinstance(title, str) or not title.strip():
        title = DEFAULT_TITLE

    return {"title": title.strip(), "html": clean_code_block(html)}


async def generate_visualization(
    encoded_payload: str,
    instruction: str = "",
    on_progress: Optional[ProgressSink] = None,
    llm: Optional[BaseChatModel] = None,
) -> Dict[str, str]:
    """
    Genera la visualización HTML interactiva para el PDF codificado.

    Hace exactamente una llamada al modelo, sin reintentos ni timeout propios.
    No modifica estado compartido: devuelve el resultado a quien llama.

    Raises:
        InvalidInputError: si el payload está vacío.
        EmptyGenerationError: si el modelo no devolvió HTML.
        GenerationError: cualquier otro fallo (BudgetExceededError si se excedió el presupuesto).
    """
    if not encoded_payload:
        raise InvalidInputError("El documento codificado está vacío.")

    _report_progress(on_progress, PROGRESS_READING)

    if llm is None:
        llm = get_llm(response_schema=RESPONSE_SCHEMA)
    if llm is None:
        logger.error("Error Crítico: LLM no disponible para generar la visualización.")
        raise GenerationError("El modelo de generación no está disponible. Revisa GEMINI_API_KEY.")

    request = build_request(encoded_payload, instruction)
    logger.info(f"Generando visualización (payload={len(encoded_payload)} chars, instrucción={'sí' if instruction else 'no'})")

    try:
        _report_progress(on_progress, PROGRESS_SIMULATING)
        response = await llm.ainvoke([request])
        visualization = parse_visualization(response.content)
    except EmptyGenerationError:
        logger.error("El modelo devolvió una respuesta sin HTML.")
        raise
    except Exception as e:
        error = classify_generation_error(e)
        logger.exception(f"Error llamando a la API de Gemini ({type(error).__name__}): {e}")
        if error is e:
            raise
        raise error from e

    logger.info(f"Visualización generada: '{visualization['title']}' ({len(visualization['html'])} chars de HTML)")
    return visualization
