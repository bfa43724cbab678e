"""
Filtering, scoping and pagination example.

Demonstrates:
- Whitelisted filters of every kind (exact, range, substring, custom)
- A policy scope narrowing the collection per subject
- Pagination settings read from the environment
- Eager loading, nested associations and computed attributes
"""

from fastapi import FastAPI
from pydantic import BaseModel, Field
from sqlalchemy import ForeignKey, String, create_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, relationship
from sqlalchemy.pool import StaticPool

from fastapi_resource_pipeline import (
    FilterSpec,
    PipelineConfig,
    Policy,
    Resource,
    ResourcePipeline,
    ResourceRegistry,
    SQLAlchemyDataSource,
    api_key,
)


class Base(DeclarativeBase):
    pass


class Warehouse(Base):
    __tablename__ = "warehouses"

    id: Mapped[int] = mapped_column(primary_key=True)
    city: Mapped[str] = mapped_column(String(80))
    products: Mapped[list["Product"]] = relationship(back_populates="warehouse")


class Product(Base):
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(primary_key=True)
    sku: Mapped[str] = mapped_column(String(40), unique=True)
    name: Mapped[str] = mapped_column(String(120))
    price: Mapped[int]
    stock: Mapped[int] = mapped_column(default=0)
    warehouse_id: Mapped[int] = mapped_column(ForeignKey("warehouses.id"))
    warehouse: Mapped[Warehouse] = relationship(back_populates="products")

    @property
    def in_stock(self) -> bool:
        return self.stock > 0

    @classmethod
    def cheaper_than(cls, statement, value):
        return statement.where(cls.price < int(value))


API_KEYS = {
    "k-north": {"tenant": "north", "warehouse_id": 1},
    "k-south": {"tenant": "south", "warehouse_id": 2},
}


async def validate_key(key: str) -> dict | None:
    return API_KEYS.get(key)


class ProductPolicy(Policy):
    def scope(self, subject, query):
        return query.filter(Product.warehouse_id == subject["warehouse_id"])

    def can_list(self, subject, target):
        return True

    def can_show(self, subject, target):
        return True

    def can_create(self, subject, target):
        return target.warehouse_id == subject["warehouse_id"]


class ProductCreate(BaseModel):
    sku: str = Field(min_length=3)
    name: str
    price: int = Field(gt=0)
    stock: int = Field(default=0, ge=0)
    warehouse_id: int


class ProductResource(Resource):
    name = "products"
    model = Product
    policy = ProductPolicy()
    permitted_fields = ("sku", "name", "price", "stock", "warehouse_id")
    allowed_filters = ("sku", "name", "price", "cheaper_than")
    filter_mappings = {
        "sku": FilterSpec.exact(),
        "name": FilterSpec.substring(),
        "price": FilterSpec.range(),
        "cheaper_than": FilterSpec.custom("cheaper_than"),
    }
    eager_load = ("warehouse",)
    included_associations = ("warehouse",)
    custom_attributes = ("in_stock",)
    schemas = {"create": ProductCreate}


engine = create_engine(
    "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
)
Base.metadata.create_all(engine)

with Session(engine) as session:
    north, south = Warehouse(city="Oslo"), Warehouse(city="Seville")
    north.products = [
        Product(sku="OSL-1", name="Wool socks", price=12, stock=40),
        Product(sku="OSL-2", name="Wool hat", price=25, stock=0),
        Product(sku="OSL-3", name="Snow shovel", price=60, stock=5),
    ]
    south.products = [Product(sku="SEV-1", name="Sun hat", price=18, stock=12)]
    session.add_all([north, south])
    session.commit()

# RESOURCE_PIPELINE_DEFAULT_PER_PAGE / _MAX_PER_PAGE / _DEBUG override these
config = PipelineConfig.from_env(authenticate=api_key(validate_key))

pipeline = ResourcePipeline(
    ResourceRegistry(ProductResource()),
    SQLAlchemyDataSource.from_engine(engine),
    config,
)

app = FastAPI(title="Filters and Pagination Example")
app.add_api_route("/products", pipeline.endpoint("products", "list"), methods=["GET"])
app.add_api_route("/products", pipeline.endpoint("products", "create"), methods=["POST"])
app.add_api_route("/products/{id}", pipeline.endpoint("products", "show"), methods=["GET"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)

    # Test with:
    # curl -H "X-API-Key: k-north" "http://localhost:8000/products?filters[price]=10,30"
    # curl -H "X-API-Key: k-north" "http://localhost:8000/products?filters[name]=hat&per_page=1"
    # curl -H "X-API-Key: k-north" "http://localhost:8000/products?filters[cheaper_than]=20"
    # curl -H "X-API-Key: k-south" http://localhost:8000/products/1
