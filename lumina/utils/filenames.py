# lumina/utils/filenames.py
import re
from typing import Optional

from lumina.core.config import settings


def build_download_filename(title: Optional[str], default_name: Optional[str] = None) -> str:
    """Nombre de archivo a partir del título: no alfanuméricos -> '_', en minúsculas."""
    safe_title = re.sub(r"[^a-z0-9]", "_", title or "", flags=re.IGNORECASE).lower()
    return f"{safe_title or default_name or settings.DEFAULT_DOWNLOAD_NAME}.html"
