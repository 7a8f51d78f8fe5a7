# lumina/orchestration/session_state.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class Phase(str, Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(frozen=True)
class SourceDocument:
    """Referencia opaca al documento subido."""
    filename: str
    content_type: str
    size: Optional[int] = None


@dataclass(frozen=True)
class Artifact:
    """Documento de visualización generado y su título extraído."""
    title: str
    html: str

    @property
    def size_kb(self) -> float:
        return round(len(self.html) / 1024, 1)


@dataclass
class Session:
    """
    Estado mutable de la única sesión viva.
    Solo SessionOrchestrator lo modifica, y solo mediante sus transiciones.
    """
    # --- Fase actual ---
    phase: Phase = Phase.IDLE

    # --- Documento de origen ---
    source_file: Optional[SourceDocument] = None
    # Se calcula una vez por archivo subido y se reutiliza en cada refinamiento
    encoded_payload: Optional[str] = None

    # --- Resultado ---
    artifact: Optional[Artifact] = None

    # --- Mensajes e instrucciones ---
    status_message: str = ""
    pending_instruction: str = ""

    def snapshot(self) -> Dict[str, Any]:
        """Vista de solo lectura para la API (sin el payload ni el HTML)."""
        return {
            "phase": self.phase.value,
            "status_message": self.status_message,
            "file_name": self.source_file.filename if self.source_file else None,
            "title": self.artifact.title if self.artifact else None,
            "output_size_kb": self.artifact.size_kb if self.artifact else None,
            "pending_instruction": self.pending_instruction,
            "has_payload": self.encoded_payload is not None,
        }
