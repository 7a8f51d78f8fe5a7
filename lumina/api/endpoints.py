from typing import Optional
from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile, status
from fastapi.responses import FileResponse, Response
from lumina.api.schemas import InstructionRequest, RefineRequest, SessionStatusResponse
from lumina.core.config import settings
from lumina.core.errors import InvalidInputError, InvalidTransitionError, SessionBusyError
from lumina.orchestration.session_machine import SessionOrchestrator
from lumina.orchestration.session_state import Phase
from lumina.rendering.render_surface import SANDBOX_POLICY
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_session(request: Request) -> SessionOrchestrator:
    # La sesión se crea al inicio y se almacena en app.state (ver main.py)
    orchestrator = getattr(request.app.state, "session", None)
    if orchestrator is None:
        logger.error("Error crítico: la sesión no está disponible en app.state.")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error interno del servidor: sesión no inicializada.",
        )
    return orchestrator


def _build_status(request: Request, orchestrator: SessionOrchestrator) -> SessionStatusResponse:
    snapshot = orchestrator.session.snapshot()
    surface = getattr(request.app.state, "render_surface", None)
    reference = surface.current if surface is not None else None
    return SessionStatusResponse(
        phase=snapshot["phase"],
        status_message=snapshot["status_message"],
        file_name=snapshot["file_name"],
        title=snapshot["title"],
        pending_instruction=snapshot["pending_instruction"],
        has_payload=snapshot["has_payload"],
        model_name=settings.GEMINI_MODEL_NAME,
        output_size_kb=snapshot["output_size_kb"],
        render_url=reference.url if reference is not None else None,
        error=snapshot["status_message"] if orchestrator.phase == Phase.ERROR else None,
    )


def _to_http_error(error: Exception) -> HTTPException:
    if isinstance(error, InvalidInputError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(error))


@router.get(
    "/status",
    response_model=SessionStatusResponse,
    summary="Estado de la sesión",
    tags=["Sesión"]
)
async def get_status(request: Request) -> SessionStatusResponse:
    """Estado actual; el cliente lo consulta mientras dura la generación."""
    return _build_status(request, _get_session(request))


@router.put(
    "/instruction",
    response_model=SessionStatusResponse,
    summary="Fijar la instrucción para la próxima generación",
    tags=["Sesión"]
)
async def set_instruction(request_data: InstructionRequest, request: Request) -> SessionStatusResponse:
    orchestrator = _get_session(request)
    try:
        orchestrator.set_instruction(request_data.instruction)
    except SessionBusyError as e:
        raise _to_http_error(e)
    return _build_status(request, orchestrator)


@router.post(
    "/upload",
    response_model=SessionStatusResponse,
    summary="Subir un PDF y generar su visualización",
    description="Recibe un PDF (y una instrucción opcional), lo codifica y genera una visualización 3D interactiva. "
                "Un fallo de generación no es un error HTTP: se devuelve la sesión en fase 'error'.",
    tags=["Visualización"]
)
async def upload_paper(
    request: Request,
    file: UploadFile = File(..., description="Artículo de investigación en PDF."),
    instruction: Optional[str] = Form(None, description="Enfoque opcional para la visualización."),
) -> SessionStatusResponse:
    orchestrator = _get_session(request)
    logger.info(f"Recibida subida: '{file.filename}' ({file.content_type})")
    try:
        await orchestrator.select_file(
            file,
            filename=file.filename or "documento.pdf",
            content_type=file.content_type,
            size=file.size,
            instruction=instruction,
        )
    except (InvalidInputError, SessionBusyError) as e:
        raise _to_http_error(e)
    finally:
        await file.close()
    return _build_status(request, orchestrator)


@router.post(
    "/refine",
    response_model=SessionStatusResponse,
    summary="Regenerar la visualización con una nueva instrucción",
    tags=["Visualización"]
)
async def refine_visualization(request_data: RefineRequest, request: Request) -> SessionStatusResponse:
    orchestrator = _get_session(request)
    try:
        await orchestrator.refine(request_data.instruction)
    except (InvalidInputError, SessionBusyError, InvalidTransitionError) as e:
        raise _to_http_error(e)
    return _build_status(request, orchestrator)


@router.post(
    "/reset",
    response_model=SessionStatusResponse,
    summary="Volver al estado inicial",
    tags=["Sesión"]
)
async def reset_session(request: Request) -> SessionStatusResponse:
    orchestrator = _get_session(request)
    try:
        orchestrator.reset()
    except SessionBusyError as e:
        raise _to_http_error(e)
    return _build_status(request, orchestrator)


@router.get(
    "/download",
    summary="Descargar el HTML generado",
    tags=["Visualización"]
)
async def download_visualization(request: Request) -> Response:
    orchestrator = _get_session(request)
    try:
        filename, html = orchestrator.build_download()
    except InvalidTransitionError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    logger.info(f"Descarga de la visualización como '{filename}'")
    return Response(
        content=html,
        media_type="text/html",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get(
    "/render/{token}",
    summary="Documento actual del visor (aislado)",
    tags=["Visualización"]
)
async def render_document(token: str, request: Request) -> FileResponse:
    surface = getattr(request.app.state, "render_surface", None)
    path = surface.resolve(token) if surface is not None else None
    if path is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Documento no disponible.")
    return FileResponse(
        path,
        media_type="text/html",
        headers={"Content-Security-Policy": SANDBOX_POLICY, "Cache-Control": "no-store"},
    )
