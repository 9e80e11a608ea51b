"""Catalog administration: product creation, edits and soft deletion."""

import json

import structlog
from protean import handle
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.product.product import Product

logger = structlog.get_logger(__name__)

_OPTIONAL_ATTRIBUTES = (
    "original_price",
    "subcategory",
    "image",
    "images",
    "in_stock",
    "stock_quantity",
    "unit",
    "preparation_time",
    "ingredients",
    "nutritional_info",
    "tags",
    "is_vegetarian",
    "is_vegan",
    "is_gluten_free",
    "spice_level",
    "is_featured",
    "sale_price",
    "sale_start_date",
    "sale_end_date",
)


@storefront.command(part_of="Product")
class CreateProduct:
    name = String(required=True, max_length=100)
    description = String(required=True, max_length=1000)
    price = Float(required=True)
    category = String(required=True, max_length=20)
    original_price = Float()
    subcategory = String(max_length=50)
    image = String(max_length=500)
    images = Text()  # JSON array
    in_stock = Boolean()
    stock_quantity = Integer()
    unit = String(max_length=20)
    preparation_time = Integer()
    ingredients = Text()  # JSON array
    nutritional_info = Text()  # JSON object
    tags = Text()  # JSON array
    is_vegetarian = Boolean()
    is_vegan = Boolean()
    is_gluten_free = Boolean()
    spice_level = String(max_length=20)
    is_featured = Boolean()
    sale_price = Float()
    sale_start_date = DateTime()
    sale_end_date = DateTime()
    created_by = Identifier()


@storefront.command(part_of="Product")
class UpdateProduct:
    product_id = Identifier(required=True)
    changes = Text(required=True)  # JSON object of attribute -> new value
    updated_by = Identifier()


@storefront.command(part_of="Product")
class DeactivateProduct:
    product_id = Identifier(required=True)
    deactivated_by = Identifier()


@storefront.command_handler(part_of=Product)
class ManageProductHandler:
    @handle(CreateProduct)
    def create_product(self, command):
        attributes = {name: getattr(command, name) for name in _OPTIONAL_ATTRIBUTES}
        product = Product.create(
            name=command.name,
            description=command.description,
            price=command.price,
            category=command.category,
            created_by=command.created_by,
            **attributes,
        )
        current_domain.repository_for(Product).add(product)
        logger.info("Product created", product_id=str(product.id), name=product.name)
        return str(product.id)

    @handle(UpdateProduct)
    def update_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        changes = json.loads(command.changes) if isinstance(command.changes, str) else command.changes
        product.update_details(updated_by=command.updated_by, **changes)
        repo.add(product)
        logger.info("Product updated", product_id=str(product.id), fields=sorted(changes))

    @handle(DeactivateProduct)
    def deactivate_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.deactivate(deactivated_by=command.deactivated_by)
        repo.add(product)
        logger.info("Product deactivated", product_id=str(product.id))
