# lumina/core/encoding.py
import base64
import binascii
import inspect
import logging
from typing import Any, Optional

from fastapi.concurrency import run_in_threadpool

from lumina.core.config import settings, ACCEPTED_UPLOAD_TYPE
from lumina.core.errors import EncodingError, InvalidInputError

logger = logging.getLogger(__name__)


def validate_upload(filename: Optional[str], content_type: Optional[str], size: Optional[int] = None) -> None:
    """
    Comprueba en la frontera que el archivo sea un PDF y no supere el tamaño máximo.
    Lanza InvalidInputError; no toca ningún estado.
    """
    if content_type != ACCEPTED_UPLOAD_TYPE:
        logger.warning(f"Subida rechazada: '{filename}' tiene tipo '{content_type}', se esperaba '{ACCEPTED_UPLOAD_TYPE}'.")
        raise InvalidInputError("Por favor, sube un archivo PDF válido.")
    if size is not None and size > settings.max_upload_bytes:
        logger.warning(f"Subida rechazada: '{filename}' ocupa {size} bytes (máximo {settings.max_upload_bytes}).")
        raise InvalidInputError(f"El PDF supera el tamaño máximo de {settings.MAX_UPLOAD_SIZE_MB} MB.")


def strip_data_url_prefix(value: str) -> str:
    """Quita el prefijo 'data:<mime>;base64,' que añaden APIs como FileReader.readAsDataURL."""
    if value.startswith("data:") and "," in value:
        return value.split(",", 1)[1]
    return value


async def _read_bytes(source: Any) -> bytes:
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    read = getattr(source, "read", None)
    if read is None:
        raise TypeError(f"No se puede leer un objeto de tipo {type(source).__name__}")
    if inspect.iscoroutinefunction(read):
        # UploadFile de Starlette/FastAPI
        data = await read()
    else:
        # Lectura bloqueante: fuera del event loop
        data = await run_in_threadpool(read)
        if inspect.isawaitable(data):
            data = await data
    if not isinstance(data, (bytes, bytearray)):
        raise TypeError(f"La lectura devolvió {type(data).__name__}, se esperaban bytes")
    return bytes(data)


async def encode_document(source: Any) -> str:
    """
    Convierte el archivo subido en texto base64 apto para transferencia.

    Acepta un UploadFile, un objeto tipo archivo binario, bytes o un data URL ya codificado.
    Cualquier fallo de lectura se propaga como EncodingError.
    """
    if isinstance(source, str):
        payload = strip_data_url_prefix(source).strip()
        if not payload:
            raise EncodingError("El data URL recibido está vacío.")
        return payload

    try:
        raw = await _read_bytes(source)
    except Exception as e:
        logger.exception(f"Error leyendo el archivo a codificar: {e}")
        raise EncodingError(f"No se pudo leer el archivo: {e}") from e

    if not raw:
        raise EncodingError("El archivo está vacío.")

    payload = base64.b64encode(raw).decode('utf-8')
    logger.debug(f"Archivo codificado: {len(raw)} bytes -> {len(payload)} caracteres base64.")
    return payload


def decode_payload(payload: str) -> bytes:
    """Inversa de encode_document: devuelve los bytes originales."""
    try:
        return base64.b64decode(strip_data_url_prefix(payload), validate=True)
    except (binascii.Error, ValueError) as e:
        raise EncodingError(f"Payload base64 inválido: {e}") from e
