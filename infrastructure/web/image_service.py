import logging
import mimetypes
from pathlib import Path
from urllib.parse import urljoin

from flask import abort, send_from_directory

from core.entities import UploadFile
from core.exceptions import ObjectStoreError
from core.ports import ObjectStore
from infrastructure.database.models import SupabaseConfig

logger = logging.getLogger(__name__)

class LocalObjectStore(ObjectStore):
    """Object store sobre el sistema de archivos (desarrollo local).

    Los objetos se sirven desde la ruta /assets/<path> de la app Flask.
    """

    def __init__(self, root_dir: str, public_base_url: str):
        self.root_dir = Path(root_dir).resolve()
        self.public_base_url = public_base_url if public_base_url.endswith("/") else public_base_url + "/"
        self.root_dir.mkdir(parents=True, exist_ok=True)

    def _resolve(self, path: str) -> Path:
        file_path = (self.root_dir / path).resolve()
        if self.root_dir not in file_path.parents:
            raise ObjectStoreError(f"Ruta fuera del almacenamiento: {path}")
        return file_path

    def upload(self, path: str, file: UploadFile) -> str:
        file_path = self._resolve(path)
        if file_path.exists():
            raise ObjectStoreError(f"The resource already exists: {path}")
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_bytes(file.content)
        except OSError as e:
            raise ObjectStoreError(f"No se pudo guardar {path}: {e}") from e
        return path

    def get_public_url(self, path: str) -> str:
        return urljoin(self.public_base_url, path.lstrip("/"))

    def delete(self, path: str) -> None:
        file_path = self._resolve(path)
        try:
            file_path.unlink()
        except FileNotFoundError:
            # igual que Supabase: borrar algo inexistente no es error
            logger.warning("Objeto inexistente al borrar: %s", path)
        except OSError as e:
            raise ObjectStoreError(f"No se pudo borrar {path}: {e}") from e

    def serve_object_file(self, path: str):
        try:
            file_path = self._resolve(path)
        except ObjectStoreError:
            abort(404)
        if not file_path.is_file():
            abort(404)

        return send_from_directory(
            directory=str(self.root_dir),
            path=path,
            mimetype=mimetypes.guess_type(file_path.name)[0] or "application/octet-stream",
            as_attachment=False,
            max_age=86400
        )

class SupabaseObjectStore(ObjectStore):
    """Adaptador para Supabase Storage (bucket de imágenes de productos)."""

    def __init__(self, client, config: SupabaseConfig):
        self.client = client
        self.config = config

    def _bucket(self):
        return self.client.storage.from_(self.config.bucket)

    def upload(self, path: str, file: UploadFile) -> str:
        options = {"content-type": file.content_type or "application/octet-stream"}
        try:
            self._bucket().upload(path, file.content, options)
        except Exception as e:
            raise ObjectStoreError(f"Upload error: {e}") from e
        return path

    def get_public_url(self, path: str) -> str:
        try:
            return self._bucket().get_public_url(path)
        except Exception as e:
            raise ObjectStoreError(f"Public URL error: {e}") from e

    def delete(self, path: str) -> None:
        try:
            self._bucket().remove([path])
        except Exception as e:
            raise ObjectStoreError(f"Delete error: {e}") from e
