from typing import Protocol
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from product_api.dao.base_dao import BaseDAO
from product_api.models.product import Product


class ProductRepository(Protocol):
    async def insert_product(self, product: Product) -> Product: ...

    async def get_product_by_id(self, product: Product) -> Product: ...

    async def update_product(self, product: Product) -> Product: ...

    async def delete_product(self, product: Product) -> None: ...


class ProductDAO(BaseDAO[Product]):
    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        super().__init__(Product, session_maker)

    async def insert_product(self, product: Product) -> Product:
        if not product.id:
            product.id = None
        return await self.create(product)

    async def get_product_by_id(self, product: Product) -> Product:
        return await self.get_by_id(product.id)

    async def update_product(self, product: Product) -> Product:
        return await self.save(product)

    async def delete_product(self, product: Product) -> None:
        await self.delete(product.id)
