# lumina/utils/json_parser.py
import json
import re
import logging
from typing import Optional

logger = logging.getLogger(__name__)

def extract_json(content: str) -> Optional[str]:
    """
    Extrae el primer bloque JSON ```json ... ``` o el objeto JSON { ... }
    de un string de respuesta de LLM.
    """
    if not content:
        return None

    # Priorizar bloque delimitado con ```json
    json_block_match = re.search(r"```json\s*(\{[\s\S]+\})\s*```", content, re.DOTALL)
    if json_block_match:
        extracted = json_block_match.group(1).strip()
        logger.debug(f"JSON extraído (patrón ```json): {extracted[:100]}...")
        return extracted

    # Si no, buscar entre el primer '{' y el último '}'
    stripped_content = content.strip()
    first_brace = stripped_content.find('{')
    last_brace = stripped_content.rfind('}')
    if first_brace != -1 and last_brace > first_brace:
        potential_json = stripped_content[first_brace:last_brace + 1]
        try:
            json.loads(potential_json)
            logger.debug("JSON extraído encontrando primer/último '{' y '}'.")
            return potential_json
        except json.JSONDecodeError:
            logger.warning("Fallo al extraer JSON incluso con primer/último '{' y '}'.")

    logger.warning("No se encontró un bloque JSON reconocible en la respuesta.")
    return None # No encontrado o no válido


def clean_code_block(text: str) -> str:
    """
    Quita el bloque de código Markdown solo si envuelve el valor completo.
    Cualquier ``` interior (comentarios, ejemplos en <pre>) forma parte del documento.
    """
    stripped = text.strip()
    code_block_match = re.match(r"^```(?:html)?\s*([\s\S]*?)\s*```$", stripped, re.IGNORECASE)
    if code_block_match:
        return code_block_match.group(1).strip()
    return stripped
