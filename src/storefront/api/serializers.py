"""Response payloads for storefront aggregates."""

from shared.jsontext import loads_json
from storefront.cart.cart import Cart
from storefront.cart.pricing import normalize_customizations
from storefront.order.order import Order
from storefront.product.product import Product


def review_data(review) -> dict:
    return {
        "id": str(review.id),
        "user_id": str(review.user_id),
        "user_name": review.user_name,
        "rating": review.rating,
        "comment": review.comment,
        "created_at": review.created_at,
    }


def product_data(product: Product, threshold: int, include_reviews: bool = True) -> dict:
    data = {
        "id": str(product.id),
        "name": product.name,
        "description": product.description,
        "price": product.price,
        "original_price": product.original_price,
        "effective_price": product.effective_price(),
        "discount_percentage": product.discount_percentage,
        "category": product.category,
        "subcategory": product.subcategory,
        "image": product.image,
        "images": loads_json(product.images, []),
        "in_stock": product.in_stock,
        "stock_quantity": product.stock_quantity,
        "availability": product.availability(threshold),
        "unit": product.unit,
        "preparation_time": product.preparation_time,
        "ingredients": loads_json(product.ingredients, []),
        "nutritional_info": loads_json(product.nutritional_info, {}),
        "tags": loads_json(product.tags, []),
        "is_vegetarian": product.is_vegetarian,
        "is_vegan": product.is_vegan,
        "is_gluten_free": product.is_gluten_free,
        "spice_level": product.spice_level,
        "rating": {
            "average": product.rating.average if product.rating else 0.0,
            "count": product.rating.count if product.rating else 0,
        },
        "is_active": product.is_active,
        "is_featured": product.is_featured,
        "sale_price": product.sale_price,
        "sale_start_date": product.sale_start_date,
        "sale_end_date": product.sale_end_date,
        "created_at": product.created_at,
        "updated_at": product.updated_at,
    }
    if include_reviews:
        data["reviews"] = [review_data(r) for r in product.reviews]
    return data


def cart_data(cart: Cart) -> dict:
    return {
        "user_id": str(cart.user_id),
        "items": [
            {
                "product_id": str(item.product_id),
                "quantity": item.quantity,
                "price": item.price,
                "customizations": normalize_customizations(item.customizations),
                "notes": item.notes,
                "line_total": item.line_total,
                "added_at": item.added_at,
            }
            for item in cart.items
        ],
        "total_items": cart.total_items,
        "total_price": cart.total_price,
        "discount": {
            "code": cart.discount.code if cart.discount else "",
            "amount": cart.discount.amount if cart.discount else 0.0,
            "percentage": cart.discount.percentage if cart.discount else 0.0,
        },
        "subtotal": cart.subtotal,
        "tax": {
            "rate": cart.tax.rate if cart.tax else 0.0,
            "amount": cart.tax.amount if cart.tax else 0.0,
        },
        "delivery_fee": cart.delivery_fee,
        "final_total": cart.final_total,
        "expires_at": cart.expires_at,
        "updated_at": cart.updated_at,
    }


def cart_summary(cart: Cart) -> dict:
    data = cart_data(cart)
    data.pop("items")
    data.pop("user_id")
    data["item_count"] = len(cart.items)
    return data


def order_data(order: Order) -> dict:
    pricing = order.pricing
    info = order.customer_info
    payment = order.payment_details
    return {
        "id": str(order.id),
        "order_number": order.order_number,
        "user_id": str(order.user_id),
        "status": order.status,
        "order_type": order.order_type,
        "table_number": order.table_number,
        "items": [
            {
                "product_id": str(item.product_id),
                "name": item.name,
                "price": item.price,
                "image": item.image,
                "quantity": item.quantity,
                "customizations": loads_json(item.customizations, []),
                "notes": item.notes,
                "subtotal": item.subtotal,
            }
            for item in order.items
        ],
        "total_items": order.total_items,
        "pricing": {
            "subtotal": pricing.subtotal,
            "discount": {"code": pricing.discount_code, "amount": pricing.discount_amount},
            "tax": {"rate": pricing.tax_rate, "amount": pricing.tax_amount},
            "delivery_fee": pricing.delivery_fee,
            "total": pricing.total,
        }
        if pricing
        else None,
        "customer_info": {
            "name": info.name,
            "email": info.email,
            "phone": info.phone,
            "address": {
                "street": info.street,
                "city": info.city,
                "state": info.state,
                "zip_code": info.zip_code,
                "landmark": info.landmark,
                "delivery_instructions": info.delivery_instructions,
            },
        }
        if info
        else None,
        "payment_method": order.payment_method,
        "payment_status": order.payment_status,
        "payment_details": {
            "transaction_id": payment.transaction_id,
            "gateway": payment.gateway,
            "paid_at": payment.paid_at,
            "refunded_at": payment.refunded_at,
            "refund_amount": payment.refund_amount,
        }
        if payment
        else None,
        "special_instructions": order.special_instructions,
        "estimated_prep_time": order.estimated_prep_time,
        "actual_prep_time": order.actual_prep_time,
        "duration": order.duration,
        "timestamps": {
            "ordered_at": order.ordered_at,
            "confirmed_at": order.confirmed_at,
            "preparing_at": order.preparing_at,
            "ready_at": order.ready_at,
            "completed_at": order.completed_at,
            "cancelled_at": order.cancelled_at,
        },
        "rating": {
            "score": order.rating.score,
            "comment": order.rating.comment,
            "rated_at": order.rating.rated_at,
        }
        if order.rating
        else None,
        "assigned_to": str(order.assigned_to) if order.assigned_to else None,
        "cancellation_reason": order.cancellation_reason,
        "notes": [
            {"content": note.content, "added_by": str(note.added_by) if note.added_by else None, "added_at": note.added_at}
            for note in order.notes
        ],
    }
