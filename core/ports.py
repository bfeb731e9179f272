from abc import ABC, abstractmethod
from typing import List, Optional
from .entities import Product, UploadFile

class ProductRepository(ABC):
    """Puerto para acceso a datos de productos (record store)"""

    @abstractmethod
    def list_products(self) -> List[Product]:
        """Todos los productos, más recientes primero"""
        pass

    @abstractmethod
    def get_product_by_id(self, product_id: int) -> Optional[Product]:
        pass

    @abstractmethod
    def insert(self, product: Product) -> Product:
        pass

    @abstractmethod
    def update(self, product_id: int, product: Product) -> Product:
        pass

    @abstractmethod
    def delete(self, product_id: int) -> bool:
        pass

class ObjectStore(ABC):
    """Puerto para el almacenamiento de imágenes (object store)"""

    @abstractmethod
    def upload(self, path: str, file: UploadFile) -> str:
        pass

    @abstractmethod
    def get_public_url(self, path: str) -> str:
        pass

    @abstractmethod
    def delete(self, path: str) -> None:
        pass

class PreviewStore(ABC):
    """Puerto para referencias de vista previa efímeras"""

    @abstractmethod
    def acquire(self, file: UploadFile) -> str:
        pass

    @abstractmethod
    def release(self, preview: str) -> None:
        pass

    @abstractmethod
    def get(self, preview: str) -> Optional[UploadFile]:
        pass
