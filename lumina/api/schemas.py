# lumina/api/schemas.py

from pydantic import BaseModel, Field, field_validator
from typing import Optional

class InstructionRequest(BaseModel):
    """
    Instrucción libre del usuario para la próxima generación (puede estar vacía: sin enfoque especial).
    """
    instruction: str = Field("", description="Conceptos en los que centrar la visualización (ej. 'mecanismo de KV Cache').")

class RefineRequest(BaseModel):
    """
    Solicitud de refinamiento. La instrucción es obligatoria: sin ella el botón queda deshabilitado.
    """
    instruction: str = Field(..., description="Qué cambiar o en qué centrarse en la nueva visualización.", min_length=1)

    @field_validator("instruction")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("La instrucción de refinamiento no puede estar vacía.")
        return v.strip()

class SessionStatusResponse(BaseModel):
    """
    Estado visible de la sesión. Toda la UI y las acciones disponibles se derivan de 'phase'.
    """
    phase: str = Field(..., description="Fase actual: 'idle', 'processing', 'completed' o 'error'.")
    status_message: str = Field("", description="Mensaje de progreso o de error.")
    file_name: Optional[str] = Field(None, description="Nombre del PDF subido.")
    title: Optional[str] = Field(None, description="Título extraído del artículo.")
    pending_instruction: str = Field("", description="Instrucción que se usará en la próxima generación.")
    has_payload: bool = Field(False, description="Si hay un documento codificado disponible para refinar.")
    model_name: str = Field(..., description="Modelo de Gemini usado para generar.")
    output_size_kb: Optional[float] = Field(None, description="Tamaño del HTML generado, en KB.")
    render_url: Optional[str] = Field(None, description="URL del documento que debe mostrar el visor.")
    error: Optional[str] = Field(None, description="Mensaje de error si la última generación falló.")

    # Ejemplo de respuesta con error:
    # { "phase": "error", "status_message": "Gemini generó una respuesta vacía.", "error": "Gemini generó una respuesta vacía.", ... }
