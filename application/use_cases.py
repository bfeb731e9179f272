import logging
from typing import List, Optional

from core.entities import Product
from core.ports import ProductRepository

logger = logging.getLogger(__name__)

class ListProductsUseCase:
    def __init__(self, product_repository: ProductRepository):
        self.product_repository = product_repository

    def execute(self) -> List[Product]:
        return self.product_repository.list_products()

class GetProductUseCase:
    def __init__(self, product_repository: ProductRepository):
        self.product_repository = product_repository

    def execute(self, product_id: int) -> Optional[Product]:
        return self.product_repository.get_product_by_id(product_id)

class DeleteProductUseCase:
    """Borra solo el registro; las imágenes del object store no se tocan"""

    def __init__(self, product_repository: ProductRepository):
        self.product_repository = product_repository

    def execute(self, product_id: int) -> bool:
        deleted = self.product_repository.delete(product_id)
        if deleted:
            logger.info("Producto %s eliminado", product_id)
        return deleted
