# lumina/rendering/render_surface.py
import hashlib
import logging
import os
import secrets
import tempfile
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from lumina.rendering.default_visual import DEFAULT_VISUAL

logger = logging.getLogger(__name__)

# Sin allow-same-origin: el documento corre en un origen opaco y no ve el estado del host
SANDBOX_POLICY = "sandbox allow-scripts allow-popups"


@dataclass(frozen=True)
class RenderReference:
    """Referencia transitoria al documento que muestra el visor."""
    token: str
    path: Path
    digest: str

    @property
    def url(self) -> str:
        return f"/api/render/{self.token}"


class RenderSurface:
    """
    Expone el documento actual al visor mediante un archivo temporal.
    Cada referencia vive en su propio ExitStack y se libera justo cuando otra la sustituye.
    """

    def __init__(self, render_dir: Path, default_html: str = DEFAULT_VISUAL):
        self.render_dir = Path(render_dir)
        self.default_html = default_html
        self._current: Optional[RenderReference] = None
        self._stack: Optional[ExitStack] = None

    @property
    def current(self) -> Optional[RenderReference]:
        return self._current

    @contextmanager
    def _materialize(self, html: str, digest: str) -> Iterator[RenderReference]:
        self.render_dir.mkdir(parents=True, exist_ok=True)
        token = secrets.token_urlsafe(16)
        fd, raw_path = tempfile.mkstemp(prefix="render_", suffix=".html", dir=self.render_dir)
        path = Path(raw_path)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(html)
            logger.debug(f"Referencia de render creada: {path.name} ({len(html)} chars)")
            yield RenderReference(token=token, path=path, digest=digest)
        finally:
            try:
                path.unlink()
                logger.debug(f"Referencia de render liberada: {path.name}")
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning(f"No se pudo eliminar el archivo de render temporal {path}: {e}")

    def display(self, html: str) -> RenderReference:
        """Muestra 'html'; la referencia anterior se libera en cuanto la nueva existe."""
        digest = hashlib.sha256(html.encode("utf-8")).hexdigest()
        if self._current is not None and self._current.digest == digest:
            return self._current

        stack = ExitStack()
        try:
            reference = stack.enter_context(self._materialize(html, digest))
        except BaseException:
            stack.close()
            raise

        previous = self._stack
        self._stack, self._current = stack, reference
        if previous is not None:
            previous.close()
        return reference

    def show_default(self) -> RenderReference:
        return self.display(self.default_html)

    def resolve(self, token: str) -> Optional[Path]:
        """Ruta del documento solo si 'token' es la referencia vigente."""
        if self._current is not None and secrets.compare_digest(self._current.token, token):
            return self._current.path
        return None

    def close(self) -> None:
        """Libera la referencia actual (cierre de la aplicación)."""
        if self._stack is not None:
            self._stack.close()
        self._stack, self._current = None, None
