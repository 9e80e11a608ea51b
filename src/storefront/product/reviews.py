"""Product reviews. One review per user per product; the rating follows the reviews."""

from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.product.product import Product


@storefront.command(part_of="Product")
class AddProductReview:
    product_id = Identifier(required=True)
    user_id = Identifier(required=True)
    user_name = String(max_length=50)
    rating = Integer(required=True, min_value=1, max_value=5)
    comment = String(max_length=500)


@storefront.command_handler(part_of=Product)
class ProductReviewHandler:
    @handle(AddProductReview)
    def add_review(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.add_review(
            user_id=command.user_id,
            rating=command.rating,
            comment=command.comment,
            user_name=command.user_name,
        )
        repo.add(product)
        return {"average": product.rating.average, "count": product.rating.count}
