from sqlalchemy import BigInteger, Integer
from sqlmodel import SQLModel, Field
from typing import Optional

# SQLite only auto-assigns ids for an INTEGER primary key
ID_TYPE = BigInteger().with_variant(Integer(), "sqlite")

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


class ProductBase(SQLModel):
    name: str = Field(default="")
    price: float = Field(default=0.0)
    quantity: int = Field(default=0, sa_type=BigInteger)


class Product(ProductBase, table=True):
    __tablename__ = "products"

    id: Optional[int] = Field(
        default=None,
        primary_key=True,
        index=True,
        sa_type=ID_TYPE,
    )


class ProductRead(ProductBase):
    id: int
