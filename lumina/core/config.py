from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from dotenv import load_dotenv
import logging

logger = logging.getLogger(__name__)
load_dotenv()

# Único tipo de documento aceptado en la subida
ACCEPTED_UPLOAD_TYPE = "application/pdf"

class Settings(BaseSettings):
    """
    Configuración centralizada de la aplicación. Carga desde .env y variables de entorno.
    La única credencial necesaria es la API Key de Gemini.
    """
    # --- Configuración Google Gemini ---
    GEMINI_API_KEY: Optional[str] = Field(default=None, description="API Key para Google Gemini (requerida para generar visualizaciones)")
    GEMINI_MODEL_NAME: str = Field(default="gemini-3-pro-preview", description="Modelo específico de Gemini a usar")

    # --- Parámetros de Generación ---
    # El límite del servicio para el presupuesto de razonamiento es 65535
    GENERATION_THINKING_BUDGET: int = Field(default=64000, description="Presupuesto de razonamiento (thinking budget) solicitado al modelo")
    GENERATION_TEMPERATURE: float = Field(default=0.5, description="Temperatura de muestreo para la generación")
    GENERATION_CANDIDATE_COUNT: int = Field(default=1, description="Número de candidatos solicitados (siempre 1)")

    # --- Subida y Renderizado ---
    MAX_UPLOAD_SIZE_MB: int = Field(default=50, description="Tamaño máximo del PDF subido, en MB")
    RENDER_DIR: str = Field(default="render_cache", description="Carpeta para los documentos temporales servidos al visor")
    DEFAULT_DOWNLOAD_NAME: str = Field(default="visualizacion", description="Nombre de archivo por defecto si el título queda vacío")

    # --- Configuración del Modelo Pydantic ---
    model_config = SettingsConfigDict(
        env_file='.env',              # Nombre del archivo .env
        env_file_encoding='utf-8',    # Codificación del archivo .env
        extra='ignore',               # Ignorar variables extra en el entorno o .env
        case_sensitive=False          # Nombres de variables insensibles a mayúsculas/minúsculas
    )

    # --- Validadores ---
    @field_validator('GEMINI_API_KEY')
    @classmethod
    def check_api_key(cls, v):
        """Avisa si falta la API key; la app arranca igual pero no podrá generar."""
        if not v:
            logger.warning("GEMINI_API_KEY no está configurada en .env o entorno. Las generaciones fallarán.")
        return v

    @field_validator('GENERATION_CANDIDATE_COUNT')
    @classmethod
    def check_candidate_count(cls, v):
        if v != 1:
            raise ValueError("GENERATION_CANDIDATE_COUNT debe ser 1: solo se usa un candidato por llamada.")
        return v

    @property
    def max_upload_bytes(self) -> int:
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

# Crear instancia única de la configuración
settings = Settings()

logger.info(f"Configuración cargada. Modelo Gemini: {settings.GEMINI_MODEL_NAME}, thinking_budget={settings.GENERATION_THINKING_BUDGET}")
