from fastapi import FastAPI
from contextlib import asynccontextmanager
from pathlib import Path
import logging
import uvicorn
import os
from lumina.core.config import settings
from lumina.core.llm import get_llm
from lumina.agents.prompts.visualizer_prompt import RESPONSE_SCHEMA
from lumina.api.endpoints import router as api_router
from lumina.orchestration.session_machine import SessionOrchestrator
from lumina.rendering.render_surface import RenderSurface

# Configurar logging básico para la aplicación
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# --- Lifespan Manager para Inicialización y Limpieza ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("--- Iniciando Aplicación FastAPI ---")

    # 1. Inicializar el LLM (la app arranca igual sin él; las generaciones fallarán con un mensaje claro)
    logger.info(f"Intentando inicializar LLM: {settings.GEMINI_MODEL_NAME}...")
    if get_llm(response_schema=RESPONSE_SCHEMA) is None:
        logger.warning("No se pudo inicializar el LLM. Revisa GEMINI_API_KEY.")
    else:
        logger.info("LLM inicializado correctamente.")

    # 2. Superficie de renderizado (referencias temporales del visor)
    render_surface = RenderSurface(Path(settings.RENDER_DIR))
    app.state.render_surface = render_surface

    # 3. Única sesión de la aplicación
    app.state.session = SessionOrchestrator(render_surface=render_surface)
    logger.info("Sesión creada en fase 'idle'.")

    logger.info("--- Aplicación lista para recibir peticiones ---")
    yield
    # Código de cierre
    logger.info("--- Cerrando aplicación FastAPI ---")
    render_surface.close()
    app.state.session = None
    app.state.render_surface = None

# --- Crear la Instancia de la Aplicación FastAPI ---
app = FastAPI(
    title="Lumina - Visualizador de Investigación",
    description="API que convierte artículos en PDF en visualizaciones 3D interactivas generadas con Gemini.",
    version="0.1.0",
    lifespan=lifespan
)

# --- Montar los Routers de la API ---
app.include_router(api_router, prefix="/api")

# --- Ruta Raíz Simple ---
@app.get("/", tags=["General"], summary="Endpoint Raíz")
async def read_root():
    return {"message": "Bienvenido al API de Lumina, el visualizador de investigación"}

# --- Arranque con Uvicorn (también como script 'lumina-server') ---
def run():
    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8008"))
    reload = os.getenv("RELOAD", "false").lower() == "true"
    uvicorn.run("lumina.main:app", host=host, port=port, reload=reload, log_level="info")

if __name__ == "__main__":
    run()
