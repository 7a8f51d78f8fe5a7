# lumina/core/llm.py
from typing import Optional, Dict, Any
from lumina.core.config import settings # Importa la instancia única de settings
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_google_genai import ChatGoogleGenerativeAI
import logging

logger = logging.getLogger(__name__)

# Variable para el cliente LLM (singleton)
_llm_client: Optional[BaseChatModel] = None
_llm_client_params: Dict[str, Any] = {}


# --- Función Principal para Obtener el LLM ---
def get_llm(
    force_reload: bool = False,
    # Si no se pasan, se usan los valores de settings
    temperature: Optional[float] = None,
    thinking_budget: Optional[int] = None,
    response_schema: Optional[Dict[str, Any]] = None
) -> Optional[BaseChatModel]:
    """
    Obtiene la instancia configurada del ChatModel de Gemini.
    Acepta 'temperature' y 'thinking_budget' opcionales para sobreescribir la configuración base.
    Si se pasa 'response_schema', el modelo queda restringido a responder JSON con ese esquema.
    """
    global _llm_client, _llm_client_params

    final_temperature = temperature if temperature is not None else settings.GENERATION_TEMPERATURE
    final_budget = thinking_budget if thinking_budget is not None else settings.GENERATION_THINKING_BUDGET

    requested_params = {
        "model": settings.GEMINI_MODEL_NAME,
        "temperature": final_temperature,
        "thinking_budget": final_budget,
        "response_schema": response_schema,
    }

    # Comprobar caché: si existe y los parámetros de creación son los mismos
    if _llm_client is not None and not force_reload and _llm_client_params == requested_params:
        logger.debug(f"Reutilizando LLM en caché: temp={final_temperature}, thinking_budget={final_budget}")
        return _llm_client

    logger.info(f"Intentando obtener LLM {settings.GEMINI_MODEL_NAME}, temp={final_temperature}, thinking_budget={final_budget}")

    try:
        if not settings.GEMINI_API_KEY:
            logger.error("GEMINI_API_KEY no configurada.")
            raise ValueError("API Key de Gemini no encontrada.")

        llm_kwargs: Dict[str, Any] = {
            "model": settings.GEMINI_MODEL_NAME,
            "google_api_key": settings.GEMINI_API_KEY,
            "temperature": final_temperature,
            "thinking_budget": final_budget,
            "n": settings.GENERATION_CANDIDATE_COUNT,
        }
        if response_schema is not None:
            llm_kwargs["response_mime_type"] = "application/json"
            llm_kwargs["response_schema"] = response_schema

        initialized_llm = ChatGoogleGenerativeAI(**llm_kwargs)
        logger.info(f"ChatGoogleGenerativeAI ({settings.GEMINI_MODEL_NAME}) inicializado con temp={final_temperature}.")

        _llm_client = initialized_llm
        _llm_client_params = requested_params
        return _llm_client

    except Exception as e:
        logger.exception(f"Error fatal durante la inicialización del LLM de Gemini: {e}")
        _llm_client = None
        _llm_client_params = {}
        return None
