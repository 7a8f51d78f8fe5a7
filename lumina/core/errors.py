# lumina/core/errors.py
from typing import Optional


class VisualizerError(Exception):
    """Base de todos los errores propios de la aplicación."""


# --- Errores de entrada y codificación ---
class InvalidInputError(VisualizerError, ValueError):
    """Subida rechazada en la frontera (tipo de archivo, tamaño, instrucción vacía)."""


class EncodingError(VisualizerError):
    """No se pudo leer o codificar el archivo subido."""


# --- Errores de generación ---
class GenerationError(VisualizerError):
    """
    Fallo de la llamada de generación (transporte, parseo o rechazo del servicio).
    Conserva la excepción original en `cause`.
    """

    def __init__(self, message: str = "", cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class BudgetExceededError(GenerationError):
    """El servicio rechazó la petición porque el presupuesto de razonamiento excede su límite."""


class EmptyGenerationError(VisualizerError):
    """El modelo devolvió una respuesta válida pero sin HTML."""


# --- Errores de la máquina de estados ---
class SessionBusyError(VisualizerError):
    """Ya hay una generación en curso; la acción se bloquea (no hay cancelación)."""


class InvalidTransitionError(VisualizerError):
    """La acción no está definida para la fase actual de la sesión."""
