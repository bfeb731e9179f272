import logging
import math
import threading
import uuid
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from typing import Iterable, List, Optional
from urllib.parse import urlparse

from core.entities import PendingUpload, Product, UploadFile
from core.exceptions import ObjectStoreError, SubmissionInProgressError, ValidationError
from core.ports import ObjectStore, PreviewStore, ProductRepository

logger = logging.getLogger(__name__)

PRODUCTS_PREFIX = "products"


def object_path_from_url(url: str, prefix: str = PRODUCTS_PREFIX) -> Optional[str]:
    """'https://.../products/abc.png' -> 'products/abc.png' (None si no hay nombre)"""
    filename = urlparse(url).path.rsplit("/", 1)[-1]
    if not filename:
        return None
    return f"{prefix}/{filename}"


def unique_object_path(file: UploadFile, prefix: str = PRODUCTS_PREFIX) -> str:
    return f"{prefix}/{uuid.uuid4()}{file.extension}"


def validate_product_fields(name, description, price) -> Product:
    if name is not None and not isinstance(name, str):
        raise ValidationError(f"Nombre inválido: {name!r}")
    if description is not None and not isinstance(description, str):
        raise ValidationError(f"Descripción inválida: {description!r}")
    name = (name or "").strip()
    if not name:
        raise ValidationError("El nombre del producto es obligatorio")
    if isinstance(price, bool):
        raise ValidationError(f"Precio inválido: {price!r}")
    try:
        price = float(price)
    except (TypeError, ValueError):
        raise ValidationError(f"Precio inválido: {price!r}")
    if not math.isfinite(price) or price < 0:
        raise ValidationError("El precio debe ser un número finito no negativo")
    return Product(name=name, description=description or "", price=price)


class ImageReconciliationManager:
    """Conjunto de trabajo de imágenes de un formulario de producto.

    Mantiene tres colecciones (imágenes existentes, subidas pendientes y
    borrados pendientes) y las reconcilia con los stores una sola vez, en
    ``submit``. Los fallos del object store se registran y no abortan; un
    fallo del record store aborta y se propaga al llamador.
    """

    def __init__(
        self,
        object_store: ObjectStore,
        product_repository: ProductRepository,
        preview_store: PreviewStore,
        product: Optional[Product] = None,
        max_workers: int = 4,
        prefix: str = PRODUCTS_PREFIX,
    ):
        self.object_store = object_store
        self.product_repository = product_repository
        self.preview_store = preview_store
        self.max_workers = max(1, max_workers)
        self.prefix = prefix

        self.product_id: Optional[int] = product.id if product else None
        self.existing_images: List[str] = list(product.images) if product else []
        self.pending_uploads: List[PendingUpload] = []
        self.pending_deletions: List[str] = []
        self._busy = threading.Lock()

    @property
    def is_editing(self) -> bool:
        return self.product_id is not None

    @property
    def is_submitting(self) -> bool:
        return self._busy.locked()

    # ========= ediciones locales =========
    @contextmanager
    def _editing(self):
        # mismo candado que submit: no se edita mientras hay un envío en curso
        if not self._busy.acquire(blocking=False):
            raise SubmissionInProgressError("El formulario tiene un envío en curso")
        try:
            yield
        finally:
            self._busy.release()

    def add_files(self, files: Iterable[UploadFile]) -> List[PendingUpload]:
        with self._editing():
            added = [PendingUpload(file=f, preview=self.preview_store.acquire(f)) for f in files]
            self.pending_uploads.extend(added)
        return added

    def remove_existing_image(self, index: int) -> str:
        with self._editing():
            if not 0 <= index < len(self.existing_images):
                raise IndexError(f"Índice de imagen existente fuera de rango: {index}")
            url = self.existing_images.pop(index)
            # si la URL sigue referenciada (duplicada) el blob sigue en uso
            if url not in self.existing_images and url not in self.pending_deletions:
                self.pending_deletions.append(url)
        return url

    def remove_pending_upload(self, index: int) -> PendingUpload:
        with self._editing():
            if not 0 <= index < len(self.pending_uploads):
                raise IndexError(f"Índice de subida pendiente fuera de rango: {index}")
            entry = self.pending_uploads.pop(index)
            self.preview_store.release(entry.preview)
        return entry

    def discard(self) -> None:
        """Libera todas las vistas previas (el usuario abandona el formulario)"""
        with self._editing():
            self._reset_pending()

    # ========= envío =========
    def submit(self, name: str, description: str, price) -> Product:
        fields = validate_product_fields(name, description, price)
        if not self._busy.acquire(blocking=False):
            raise SubmissionInProgressError("Ya hay un envío en curso")
        try:
            self._delete_marked_images()
            uploaded_urls = self._upload_pending_images()

            final_images = self.existing_images + uploaded_urls
            self.existing_images = final_images
            fields.images = list(final_images)

            saved = self._write_product(fields)
            if saved.id is not None:
                self.product_id = saved.id
            return saved
        finally:
            self._reset_pending()
            self._busy.release()

    def _delete_marked_images(self) -> None:
        paths = []
        for url in self.pending_deletions:
            path = object_path_from_url(url, self.prefix)
            if path is None:
                logger.warning("No se pudo derivar la ruta de %s, se omite el borrado", url)
                continue
            paths.append(path)
        if not paths:
            return

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = [(path, pool.submit(self.object_store.delete, path)) for path in paths]
        failed = 0
        for path, future in futures:
            try:
                future.result()
            except ObjectStoreError as e:
                failed += 1
                logger.error("Delete error (%s): %s", path, e)
        logger.info("Borrado de imágenes: %d ok, %d con error", len(paths) - failed, failed)

    def _upload_one(self, entry: PendingUpload) -> str:
        path = unique_object_path(entry.file, self.prefix)
        self.object_store.upload(path, entry.file)
        return self.object_store.get_public_url(path)

    def _upload_pending_images(self) -> List[str]:
        if not self.pending_uploads:
            return []

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = [(entry, pool.submit(self._upload_one, entry)) for entry in self.pending_uploads]
        urls = []
        for entry, future in futures:
            try:
                urls.append(future.result())
            except ObjectStoreError as e:
                logger.error("Upload error (%s): %s", entry.file.filename, e)
        logger.info("Subida de imágenes: %d de %d", len(urls), len(futures))
        return urls

    def _write_product(self, fields: Product) -> Product:
        try:
            if self.is_editing:
                return self.product_repository.update(self.product_id, fields)
            return self.product_repository.insert(fields)
        except Exception as e:
            logger.error("Error saving product: %s", e)
            raise

    def _reset_pending(self) -> None:
        for entry in self.pending_uploads:
            self.preview_store.release(entry.preview)
        self.pending_uploads = []
        self.pending_deletions = []
