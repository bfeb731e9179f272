import threading
import uuid
from typing import Dict, Optional

from flask import abort, current_app

from core.entities import UploadFile
from core.ports import PreviewStore

class InMemoryPreviewStore(PreviewStore):
    """Vistas previas de archivos aún no subidos, servidas en /previews/<token>.

    Cada referencia es única y no se reutiliza después de liberarse.
    """

    def __init__(self, url_prefix: str = "/previews/"):
        self.url_prefix = url_prefix if url_prefix.endswith("/") else url_prefix + "/"
        self._files: Dict[str, UploadFile] = {}
        self._lock = threading.Lock()

    def acquire(self, file: UploadFile) -> str:
        preview = f"{self.url_prefix}{uuid.uuid4().hex}"
        with self._lock:
            self._files[preview] = file
        return preview

    def release(self, preview: str) -> None:
        with self._lock:
            self._files.pop(preview, None)

    def get(self, preview: str) -> Optional[UploadFile]:
        with self._lock:
            return self._files.get(preview)

    def __contains__(self, preview: str) -> bool:
        return self.get(preview) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._files)

    def serve_preview(self, token: str):
        file = self.get(f"{self.url_prefix}{token}")
        if file is None:
            abort(404)
        return current_app.response_class(
            response=file.content,
            status=200,
            mimetype=file.content_type or "application/octet-stream",
            headers={"Cache-Control": "no-store"},
        )
