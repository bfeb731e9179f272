import logging
import threading
import time
import uuid
from typing import Callable, Dict, Iterable, Optional, Tuple

from core.entities import Product, UploadFile
from core.exceptions import FormSessionNotFoundError, SubmissionInProgressError
from core.ports import ObjectStore, PreviewStore, ProductRepository
from .image_reconciliation import ImageReconciliationManager
from .use_cases import DeleteProductUseCase, GetProductUseCase, ListProductsUseCase

logger = logging.getLogger(__name__)

ACCEPTED_IMAGE_EXTENSIONS = (".jpeg", ".jpg", ".png", ".gif", ".webp")


def is_accepted_image(file: UploadFile) -> bool:
    return file.extension.lower() in ACCEPTED_IMAGE_EXTENSIONS


class ProductService:
    def __init__(self, list_use_case: ListProductsUseCase, get_use_case: GetProductUseCase,
                 delete_use_case: DeleteProductUseCase):
        self.list_use_case = list_use_case
        self.get_use_case = get_use_case
        self.delete_use_case = delete_use_case

    def list_products(self):
        return self.list_use_case.execute()

    def get_product(self, product_id: int):
        return self.get_use_case.execute(product_id)

    def delete_product(self, product_id: int) -> bool:
        return self.delete_use_case.execute(product_id)


class ProductFormService:
    """Registro en memoria de formularios de alta/edición abiertos.

    Cada formulario tiene su propio ImageReconciliationManager. Tras un envío
    exitoso el formulario se descarta; si el envío falla sigue abierto (ya
    reseteado) para que el usuario pueda reintentar. Los formularios sin
    actividad durante ``form_ttl_seconds`` se descartan y liberan sus vistas
    previas.
    """

    def __init__(self, get_use_case: GetProductUseCase, object_store: ObjectStore,
                 product_repository: ProductRepository, preview_store: PreviewStore,
                 upload_workers: int = 4, form_ttl_seconds: float = 1800,
                 clock: Callable[[], float] = time.monotonic):
        self.get_use_case = get_use_case
        self.object_store = object_store
        self.product_repository = product_repository
        self.preview_store = preview_store
        self.upload_workers = upload_workers
        self.form_ttl_seconds = form_ttl_seconds
        self.clock = clock
        self._forms: Dict[str, ImageReconciliationManager] = {}
        self._touched: Dict[str, float] = {}
        self._lock = threading.Lock()

    def _expire_idle_forms(self) -> None:
        # se llama con self._lock tomado
        deadline = self.clock() - self.form_ttl_seconds
        for form_id in [f for f, t in self._touched.items() if t < deadline]:
            try:
                self._forms[form_id].discard()
            except SubmissionInProgressError:
                continue
            del self._forms[form_id]
            del self._touched[form_id]
            logger.info("Formulario %s descartado por inactividad", form_id)

    def open_form(self, product_id: Optional[int] = None) -> Tuple[str, ImageReconciliationManager]:
        product = None
        if product_id is not None:
            product = self.get_use_case.execute(product_id)
            if product is None:
                # igual que la página de edición: sin registro se abre un alta vacía
                logger.warning("Producto %s no encontrado, se abre un formulario de alta", product_id)

        manager = ImageReconciliationManager(
            self.object_store,
            self.product_repository,
            self.preview_store,
            product=product,
            max_workers=self.upload_workers,
        )
        form_id = uuid.uuid4().hex
        with self._lock:
            self._expire_idle_forms()
            self._forms[form_id] = manager
            self._touched[form_id] = self.clock()
        return form_id, manager

    def get_form(self, form_id: str) -> ImageReconciliationManager:
        with self._lock:
            self._expire_idle_forms()
            manager = self._forms.get(form_id)
            if manager is not None:
                self._touched[form_id] = self.clock()
        if manager is None:
            raise FormSessionNotFoundError(f"Formulario no encontrado: {form_id}")
        return manager

    def _forget(self, form_id: str) -> None:
        with self._lock:
            self._forms.pop(form_id, None)
            self._touched.pop(form_id, None)

    def discard_form(self, form_id: str) -> None:
        manager = self.get_form(form_id)
        manager.discard()
        self._forget(form_id)

    def add_files(self, form_id: str, files: Iterable[UploadFile]):
        """Agrega solo imágenes aceptadas; devuelve los nombres rechazados"""
        manager = self.get_form(form_id)
        accepted, rejected = [], []
        for f in files:
            (accepted if is_accepted_image(f) else rejected).append(f)
        manager.add_files(accepted)
        return [f.filename for f in rejected]

    def remove_existing_image(self, form_id: str, index: int) -> str:
        return self.get_form(form_id).remove_existing_image(index)

    def remove_pending_upload(self, form_id: str, index: int):
        return self.get_form(form_id).remove_pending_upload(index)

    def submit(self, form_id: str, name: str, description: str, price) -> Tuple[Product, bool]:
        """Devuelve (producto guardado, creado?)"""
        manager = self.get_form(form_id)
        created = not manager.is_editing
        saved = manager.submit(name, description, price)
        self._forget(form_id)
        return saved, created

    @property
    def open_forms(self) -> int:
        with self._lock:
            return len(self._forms)
