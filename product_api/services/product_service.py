from typing import Optional, Protocol
from product_api.dao.product_dao import ProductRepository
from product_api.models.product import Product
import structlog


class ProductServiceProtocol(Protocol):
    async def add_product(self, product: Product) -> Product: ...

    async def get_product_by_id(self, product: Product) -> Product: ...

    async def update_product(self, product: Product) -> Product: ...

    async def remove_product(self, product: Product) -> None: ...


class ProductService:
    """Forwards product operations to the repository.

    Failures are logged with the method name and re-raised unchanged; existence
    checks belong to the caller.
    """

    def __init__(self, product_repository: ProductRepository, logger: Optional[structlog.stdlib.BoundLogger] = None):
        self.product_repository = product_repository
        self.logger = logger or structlog.get_logger()

    def _log_failure(self, method_name: str, error: Exception):
        self.logger.error(
            str(error),
            methodName=method_name,
            type=f"{method_name}_service_action",
        )

    async def add_product(self, product: Product) -> Product:
        try:
            return await self.product_repository.insert_product(product)
        except Exception as e:
            self._log_failure("add_product", e)
            raise

    async def get_product_by_id(self, product: Product) -> Product:
        try:
            return await self.product_repository.get_product_by_id(product)
        except Exception as e:
            self._log_failure("get_product_by_id", e)
            raise

    async def update_product(self, product: Product) -> Product:
        try:
            return await self.product_repository.update_product(product)
        except Exception as e:
            self._log_failure("update_product", e)
            raise

    async def remove_product(self, product: Product) -> None:
        try:
            await self.product_repository.delete_product(product)
        except Exception as e:
            self._log_failure("remove_product", e)
            raise
