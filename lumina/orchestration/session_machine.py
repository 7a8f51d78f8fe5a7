# lumina/orchestration/session_machine.py
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from lumina.agents.visualizer_agent import generate_visualization
from lumina.core.encoding import encode_document, validate_upload
from lumina.core.errors import (
    BudgetExceededError,
    EmptyGenerationError,
    EncodingError,
    InvalidInputError,
    InvalidTransitionError,
    SessionBusyError,
)
from lumina.orchestration.session_state import Artifact, Phase, Session, SourceDocument
from lumina.rendering.render_surface import RenderSurface
from lumina.utils.filenames import build_download_filename

logger = logging.getLogger(__name__)

Generator = Callable[..., Awaitable[Dict[str, str]]]
Encoder = Callable[[Any], Awaitable[str]]

# --- Mensajes de estado mostrados al usuario ---
MSG_INITIALIZING = "Inicializando sistema..."
MSG_ANALYZING = "Analizando la lógica de la investigación..."
MSG_ANALYZING_FOCUS = "Analizando con enfoque personalizado..."
MSG_REFINING = "Refinando visualización..."
MSG_COMPLETED = "Visualización lista."
MSG_GENERIC_FAILURE = "La generación falló."
MSG_BUDGET_EXCEEDED = "Error: la complejidad excedió el límite de tokens de razonamiento."
MSG_EMPTY_GENERATION = "Gemini generó una respuesta vacía."


def describe_error(error: BaseException) -> str:
    """Traduce un error del flujo de generación al mensaje de estado."""
    if isinstance(error, BudgetExceededError):
        return MSG_BUDGET_EXCEEDED
    if isinstance(error, EmptyGenerationError):
        return MSG_EMPTY_GENERATION
    if isinstance(error, EncodingError):
        return MSG_GENERIC_FAILURE
    return str(error).strip() or MSG_GENERIC_FAILURE


class SessionOrchestrator:
    """
    Máquina de estados de la aplicación: Idle -> Processing -> Completed / Error.

    Posee la única Session. Todas las mutaciones pasan por las transiciones
    nombradas de esta clase; solo puede haber una generación en curso.
    """

    def __init__(
        self,
        generator: Optional[Generator] = None,
        encoder: Optional[Encoder] = None,
        render_surface: Optional[RenderSurface] = None,
    ):
        self._generator = generator or generate_visualization
        self._encoder = encoder or encode_document
        self._render_surface = render_surface
        self.session = Session()
        self._sync_render_surface()

    @property
    def phase(self) -> Phase:
        return self.session.phase

    # --- Guardas ---
    def _ensure_not_processing(self, action: str) -> None:
        if self.session.phase == Phase.PROCESSING:
            logger.warning(f"Acción '{action}' bloqueada: ya hay una generación en curso.")
            raise SessionBusyError("Ya hay una generación en curso. Espera a que termine.")

    # --- Transiciones ---
    def set_instruction(self, instruction: str) -> Session:
        """Guarda la instrucción para la próxima generación (inicial o de refinamiento)."""
        self._ensure_not_processing("set_instruction")
        self.session.pending_instruction = (instruction or "").strip()
        return self.session

    def report_progress(self, message: str) -> None:
        """Sumidero de progreso del cliente de generación; solo actúa en Processing."""
        if self.session.phase != Phase.PROCESSING:
            logger.debug(f"Progreso ignorado fuera de Processing: '{message}'")
            return
        self.session.status_message = message

    async def select_file(
        self,
        file: Any,
        filename: str,
        content_type: Optional[str],
        size: Optional[int] = None,
        instruction: Optional[str] = None,
    ) -> Session:
        """Idle/Completed/Error -> Processing -> Completed/Error con un archivo nuevo."""
        validate_upload(filename, content_type, size)
        self._ensure_not_processing("select_file")
        if instruction is not None:
            self.session.pending_instruction = instruction.strip()

        logger.info(f"Archivo seleccionado: '{filename}' ({size if size is not None else '?'} bytes)")
        self.session.source_file = SourceDocument(filename=filename, content_type=content_type, size=size)
        self.session.encoded_payload = None

        try:
            self._enter_processing(MSG_INITIALIZING)
            try:
                encoded_payload = await self._encoder(file)
            except Exception as e:
                logger.exception(f"Fallo al codificar '{filename}': {e}")
                self._fail(e if isinstance(e, EncodingError) else EncodingError(str(e)))
                return self.session

            self.session.encoded_payload = encoded_payload
            instruction = self.session.pending_instruction
            await self._run_generation(instruction, MSG_ANALYZING_FOCUS if instruction else MSG_ANALYZING)
        except BaseException as e:
            self._abort_processing(e)
            raise
        return self.session

    async def refine(self, instruction: Optional[str] = None) -> Session:
        """Completed/Error -> Processing reutilizando el payload ya codificado."""
        self._ensure_not_processing("refine")
        if self.session.phase not in (Phase.COMPLETED, Phase.ERROR) or self.session.encoded_payload is None:
            raise InvalidTransitionError("No hay ningún documento cargado que refinar.")

        candidate = instruction.strip() if instruction is not None else self.session.pending_instruction
        if not candidate:
            raise InvalidInputError("La instrucción de refinamiento no puede estar vacía.")
        self.session.pending_instruction = candidate

        logger.info(f"Refinando visualización con instrucción: '{self.session.pending_instruction}'")
        try:
            self._enter_processing(MSG_REFINING)
            await self._run_generation(self.session.pending_instruction, MSG_REFINING, clear_instruction=True)
        except BaseException as e:
            self._abort_processing(e)
            raise
        return self.session

    def reset(self) -> Session:
        """Completed/Error -> Idle, limpiando todos los campos."""
        self._ensure_not_processing("reset")
        logger.info("Reiniciando sesión.")
        self.session = Session()
        self._sync_render_surface()
        return self.session

    def build_download(self) -> Tuple[str, str]:
        """Devuelve (nombre_de_archivo, html) de la visualización actual."""
        artifact = self.session.artifact
        if self.session.phase != Phase.COMPLETED or artifact is None:
            raise InvalidTransitionError("No hay ninguna visualización generada para descargar.")
        return build_download_filename(artifact.title), artifact.html

    # --- Internos ---
    def _enter_processing(self, message: str) -> None:
        self.session.phase = Phase.PROCESSING
        self.session.artifact = None
        self.session.status_message = message
        self._sync_render_surface()

    async def _run_generation(self, instruction: str, message: str, clear_instruction: bool = False) -> None:
        self.session.status_message = message
        try:
            result = await self._generator(
                self.session.encoded_payload,
                instruction,
                on_progress=self.report_progress,
            )
        except Exception as e:
            # Frontera de orquestación: ningún error de generación queda sin manejar
            logger.exception(f"Fallo en la generación: {e}")
            self._fail(e)
            return
        self._complete(result, clear_instruction)

    def _complete(self, result: Dict[str, str], clear_instruction: bool = False) -> None:
        self.session.artifact = Artifact(title=result["title"], html=result["html"])
        self.session.phase = Phase.COMPLETED
        self.session.status_message = MSG_COMPLETED
        if clear_instruction:
            # Solo un refinamiento exitoso consume la instrucción; el enfoque de la subida se conserva
            self.session.pending_instruction = ""
        logger.info(f"Sesión completada: '{self.session.artifact.title}' ({self.session.artifact.size_kb} KB)")
        self._sync_render_surface()

    def _fail(self, error: BaseException) -> None:
        self.session.phase = Phase.ERROR
        self.session.artifact = None
        self.session.status_message = describe_error(error)
        logger.info(f"Sesión en error: {self.session.status_message}")
        self._sync_render_surface()

    def _abort_processing(self, error: BaseException) -> None:
        """Una interrupción (p. ej. cancelación) no puede dejar la sesión atrapada en Processing."""
        if self.session.phase != Phase.PROCESSING:
            return
        logger.error(f"Generación interrumpida ({type(error).__name__}); la sesión pasa a 'error'.")
        self._fail(error)

    def _sync_render_surface(self) -> None:
        if self._render_surface is None:
            return
        try:
            if self.session.artifact is not None:
                self._render_surface.display(self.session.artifact.html)
            else:
                self._render_surface.show_default()
        except OSError as e:
            # El visor sigue mostrando la referencia anterior; la sesión avanza igual
            logger.exception(f"No se pudo actualizar el documento del visor: {e}")
