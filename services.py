"""
Per-entity storage services.

Each service is a thin repository over one collection of the injected Database:
list-with-filter, get, create, update (merge over the stored record) and delete.
Services raise the typed errors from errors.py; HTTP concerns stay in main.py.
"""
import logging
import random
import string
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, get_args

from passlib.context import CryptContext
from pydantic import ValidationError as PydanticValidationError

import config
from database import Collection, Database, new_id
from errors import (
    ForbiddenError,
    InvalidStatusTransition,
    NotFoundError,
    ValidationError,
    first_error_message,
)
from schemas import (
    Address,
    AddressFields,
    AddressIn,
    AddressUpdate,
    Artisan,
    ArtisanIn,
    ArtisanUpdate,
    CartItem,
    CartItemIn,
    Customer,
    Order,
    OrderIn,
    OrderItem,
    OrderWithCustomer,
    Product,
    ProductFilters,
    ProductIn,
    ProductUpdate,
    ProductWithArtisan,
    RegisterDTO,
    Review,
    ReviewIn,
    ReviewWithUser,
    SUPPORT_STATUS_ALIASES,
    SupportMessage,
    SupportMessageIn,
    SupportStatus,
    User,
)

logger = logging.getLogger("artisan_store.services")

# Security
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=config.BCRYPT_ROUNDS)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def _merge(model_cls, existing, changes: dict):
    """Overlay ``changes`` on ``existing`` and re-validate the whole record."""
    try:
        return model_cls.model_validate({**existing.model_dump(), **changes})
    except PydanticValidationError as exc:
        raise ValidationError(first_error_message(exc.errors()))


def _newest_first(records):
    # ties keep the later insert first
    return sorted(records, key=lambda r: r.created_at)[::-1]


# Users

class UserService:
    def __init__(self, db: Database):
        self.users: Collection[User] = db["user"]

    def get_user(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        needle = email.strip().lower()
        return self.users.find_one(lambda u: u.email.lower() == needle)

    def create_user(self, data: RegisterDTO, is_admin: bool = False) -> User:
        with self.users.lock:
            if self.get_user_by_email(data.email):
                raise ValidationError("Email already exists")
            user = User(
                id=new_id(),
                email=str(data.email),
                password=hash_password(data.password),
                first_name=data.first_name,
                last_name=data.last_name,
                is_admin=is_admin,
            )
            self.users.insert(user)
        logger.info("User registered: %s", user.email)
        return user

    def authenticate(self, email: str, password: str) -> User:
        user = self.get_user_by_email(email)
        if not user or not verify_password(password, user.password):
            raise ValidationError("Invalid credentials")
        return user

    def customer(self, user_id: str) -> Optional[Customer]:
        user = self.get_user(user_id)
        if not user:
            return None
        return Customer(first_name=user.first_name, last_name=user.last_name, email=user.email)


# Artisans

class ArtisanService:
    def __init__(self, db: Database):
        self.artisans: Collection[Artisan] = db["artisan"]

    def get_artisans(self) -> List[Artisan]:
        return self.artisans.find()

    def get_artisan_by_id(self, artisan_id: str) -> Optional[Artisan]:
        return self.artisans.get(artisan_id)

    def require_artisan(self, artisan_id: str) -> Artisan:
        artisan = self.get_artisan_by_id(artisan_id)
        if not artisan:
            raise NotFoundError("Artisan not found")
        return artisan

    def create_artisan(self, data: ArtisanIn, artisan_id: Optional[str] = None) -> Artisan:
        artisan = Artisan(id=artisan_id or new_id(), **data.model_dump())
        self.artisans.insert(artisan)
        logger.info("Created artisan %s (%s)", artisan.id, artisan.name)
        return artisan

    def update_artisan(self, artisan_id: str, data: ArtisanUpdate) -> Artisan:
        with self.artisans.lock:
            existing = self.require_artisan(artisan_id)
            updated = _merge(Artisan, existing, data.model_dump(exclude_unset=True))
            self.artisans.replace(updated)
        logger.info("Updated artisan %s", artisan_id)
        return updated

    def delete_artisan(self, artisan_id: str) -> None:
        # products keep their artisan_id; the reference is weak
        if not self.artisans.delete(artisan_id):
            raise NotFoundError("Artisan not found")
        logger.info("Deleted artisan %s", artisan_id)


# Products

class ProductService:
    def __init__(self, db: Database, artisans: ArtisanService):
        self.products: Collection[Product] = db["product"]
        self.artisans = artisans

    @staticmethod
    def generate_asin() -> str:
        alphabet = string.ascii_uppercase + string.digits
        return "ASIN" + "".join(random.choices(alphabet, k=9))

    def get_products(self, filters: Optional[ProductFilters] = None) -> List[Product]:
        filters = filters or ProductFilters()
        products = self.products.find()

        if filters.search and filters.search.strip():
            term = filters.search.strip().lower()
            products = [
                p for p in products
                if term in p.name.lower()
                or term in p.description.lower()
                or term in p.category.lower()
                or term in p.material.lower()
                or term in p.country_of_origin.lower()
            ]
        if filters.country:
            country = filters.country.lower()
            products = [p for p in products if p.country_of_origin.lower() == country]
        if filters.material:
            material = filters.material.lower()
            products = [p for p in products if p.material.lower() == material]
        if filters.category:
            category = filters.category.lower()
            products = [p for p in products if p.category.lower() == category]
        return products

    def get_featured_products(self) -> List[Product]:
        return [p for p in self.get_products() if p.featured]

    def get_product(self, product_id: str) -> Optional[Product]:
        return self.products.get(product_id)

    def require_product(self, product_id: str) -> Product:
        product = self.get_product(product_id)
        if not product:
            raise NotFoundError("Product not found")
        return product

    def get_products_by_artisan_id(self, artisan_id: str) -> List[Product]:
        return self.products.find(lambda p: p.artisan_id == artisan_id)

    def with_artisan(self, product: Product) -> ProductWithArtisan:
        artisan = self.artisans.get_artisan_by_id(product.artisan_id) if product.artisan_id else None
        return ProductWithArtisan(**product.model_dump(), artisan=artisan)

    def _check_asin(self, asin: str, product_id: Optional[str] = None):
        clash = self.products.find_one(lambda p: p.asin == asin and p.id != product_id)
        if clash:
            raise ValidationError("ASIN already exists")

    def create_product(self, data: ProductIn, product_id: Optional[str] = None) -> Product:
        with self.products.lock:
            fields = data.model_dump()
            fields["asin"] = data.asin or self.generate_asin()
            self._check_asin(fields["asin"])
            product = Product(id=product_id or new_id(), **fields)
            self.products.insert(product)
        logger.info("Created product %s (%s)", product.id, product.asin)
        return product

    def update_product(self, product_id: str, data: ProductUpdate) -> Product:
        with self.products.lock:
            existing = self.require_product(product_id)
            changes = data.model_dump(exclude_unset=True)
            if not changes.get("asin"):
                changes.pop("asin", None)
            updated = _merge(Product, existing, changes)
            self._check_asin(updated.asin, product_id)
            self.products.replace(updated)
        logger.info("Updated product %s", product_id)
        return updated

    def delete_product(self, product_id: str) -> None:
        if not self.products.delete(product_id):
            raise NotFoundError("Product not found")
        logger.info("Deleted product %s", product_id)

    def toggle_product_featured(self, product_id: str, featured: bool) -> Product:
        with self.products.lock:
            existing = self.require_product(product_id)
            updated = existing.model_copy(update={"featured": featured})
            self.products.replace(updated)
        return updated


# Reviews

class ReviewService:
    def __init__(self, db: Database, users: UserService, products: ProductService):
        self.reviews: Collection[Review] = db["review"]
        self.users = users
        self.products = products

    def get_product_reviews(self, product_id: str) -> List[ReviewWithUser]:
        reviews = self.reviews.find(lambda r: r.product_id == product_id)
        result = []
        for review in reviews:
            user = self.users.get_user(review.user_id)
            user_name = f"{user.first_name} {user.last_name}" if user else "Anonymous User"
            result.append(ReviewWithUser(**review.model_dump(), user_name=user_name))
        return result

    def create_review(self, product_id: str, user_id: str, data: ReviewIn) -> Review:
        self.products.require_product(product_id)
        with self.reviews.lock:
            existing = self.reviews.find_one(lambda r: r.product_id == product_id and r.user_id == user_id)
            if existing:
                raise ValidationError("You have already reviewed this product")
            review = Review(
                id=new_id(),
                product_id=product_id,
                user_id=user_id,
                rating=data.rating,
                comment=data.comment,
            )
            self.reviews.insert(review)
        return review


# Cart

class CartService:
    def __init__(self, db: Database, products: ProductService):
        self.items: Collection[CartItem] = db["cartitem"]
        self.products = products

    def get_user_cart(self, user_id: str) -> List[CartItem]:
        return self.items.find(lambda i: i.user_id == user_id)

    def _require_item(self, user_id: str, item_id: str) -> CartItem:
        item = self.items.get(item_id)
        if not item or item.user_id != user_id:
            raise NotFoundError("Cart item not found")
        return item

    def add_to_cart(self, user_id: str, data: CartItemIn) -> CartItem:
        product = self.products.require_product(data.product_id)
        if not product.in_stock:
            raise ValidationError("Product is out of stock")
        with self.items.lock:
            existing = self.items.find_one(
                lambda i: i.user_id == user_id and i.product_id == data.product_id
            )
            if existing:
                merged = existing.model_copy(update={"quantity": existing.quantity + data.quantity})
                return self.items.replace(merged)
            item = CartItem(id=new_id(), user_id=user_id, product_id=data.product_id, quantity=data.quantity)
            return self.items.insert(item)

    def update_cart_item(self, user_id: str, item_id: str, quantity: int) -> CartItem:
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")
        with self.items.lock:
            item = self._require_item(user_id, item_id)
            return self.items.replace(item.model_copy(update={"quantity": quantity}))

    def remove_from_cart(self, user_id: str, item_id: str) -> None:
        with self.items.lock:
            self._require_item(user_id, item_id)
            self.items.delete(item_id)

    def clear_cart(self, user_id: str) -> int:
        return self.items.delete_many(lambda i: i.user_id == user_id)


# Orders

ORDER_STATUSES = ("pending", "processing", "shipped", "delivered", "cancelled")

ORDER_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    "pending": frozenset({"processing", "shipped", "cancelled"}),
    "processing": frozenset({"shipped", "cancelled"}),
    "shipped": frozenset({"delivered"}),
    "delivered": frozenset(),
    "cancelled": frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    """Re-setting the current status is allowed so a tracking number can be attached."""
    return target == current or target in ORDER_TRANSITIONS.get(current, frozenset())


class OrderService:
    def __init__(self, db: Database, users: UserService, products: ProductService, cart: CartService):
        self.orders: Collection[Order] = db["order"]
        self.users = users
        self.products = products
        self.cart = cart

    def get_user_orders(self, user_id: str) -> List[Order]:
        return _newest_first(self.orders.find(lambda o: o.user_id == user_id))

    def get_all_orders(self) -> List[Order]:
        return _newest_first(self.orders.find())

    def get_order_by_id(self, order_id: str) -> Optional[Order]:
        return self.orders.get(order_id)

    def require_order(self, order_id: str) -> Order:
        order = self.get_order_by_id(order_id)
        if not order:
            raise NotFoundError("Order not found")
        return order

    def with_customer(self, order: Order) -> OrderWithCustomer:
        return OrderWithCustomer(**order.model_dump(), customer=self.users.customer(order.user_id))

    def create_order(self, user_id: str, items: List[OrderItem], total_amount: Optional[float] = None,
                     currency: Optional[str] = None, shipping_address: Optional[AddressFields] = None,
                     payment_method: str = "cod") -> Order:
        if not items:
            raise ValidationError("Order must contain at least one item")
        if total_amount is None:
            total_amount = round(sum(i.price * i.quantity for i in items), 2)
        order = Order(
            id=new_id(),
            user_id=user_id,
            items=items,
            total_amount=total_amount,
            currency=currency or config.PRIMARY_CURRENCY,
            status="pending",
            shipping_address=shipping_address,
            payment_method=payment_method,
        )
        self.orders.insert(order)
        logger.info("Order %s placed by %s: %s %s", order.id, user_id, order.total_amount, order.currency)
        return order

    def _snapshot_cart(self, user_id: str) -> List[OrderItem]:
        items = []
        for line in self.cart.get_user_cart(user_id):
            product = self.products.get_product(line.product_id)
            if not product:
                raise ValidationError(f"Product {line.product_id} is no longer available")
            items.append(OrderItem(product_id=product.id, quantity=line.quantity, price=product.effective_price))
        return items

    def place_order(self, user_id: str, data: OrderIn) -> Order:
        """Create an order from the payload (or the user's cart), then empty the cart."""
        items = list(data.items) or self._snapshot_cart(user_id)
        if not items:
            raise ValidationError("Cart is empty")
        order = self.create_order(
            user_id,
            items,
            total_amount=data.total_amount,
            currency=data.currency,
            shipping_address=data.shipping_address,
            payment_method=data.payment_method,
        )
        # Not atomic with the order insert; a failure here leaves the order in place.
        try:
            self.cart.clear_cart(user_id)
        except Exception:
            logger.exception("Failed to clear cart for %s after order %s", user_id, order.id)
        return order

    def update_order_status(self, order_id: str, status: str, tracking_number: Optional[str] = None) -> Order:
        if status not in ORDER_STATUSES:
            raise ValidationError("Invalid order status")
        with self.orders.lock:
            order = self.require_order(order_id)
            if not can_transition(order.status, status):
                raise InvalidStatusTransition(order.status, status)
            changes = {"status": status}
            if tracking_number:
                changes["tracking_number"] = tracking_number
            updated = self.orders.replace(order.model_copy(update=changes))
        logger.info("Order %s: %s -> %s", order_id, order.status, status)
        return updated

    def cancel_order(self, order_id: str, user_id: str, is_admin: bool = False) -> Order:
        order = self.require_order(order_id)
        if order.user_id != user_id and not is_admin:
            raise ForbiddenError("Not authorized to cancel this order")
        return self.update_order_status(order_id, "cancelled")


# Addresses

class AddressService:
    def __init__(self, db: Database):
        self.addresses: Collection[Address] = db["address"]

    def get_user_addresses(self, user_id: str) -> List[Address]:
        return self.addresses.find(lambda a: a.user_id == user_id)

    def require_address(self, user_id: str, address_id: str) -> Address:
        address = self.addresses.get(address_id)
        if not address or address.user_id != user_id:
            raise NotFoundError("Address not found")
        return address

    def _clear_other_defaults(self, user_id: str, keep_id: str):
        for addr in self.get_user_addresses(user_id):
            if addr.is_default and addr.id != keep_id:
                self.addresses.replace(addr.model_copy(update={"is_default": False}))

    def create_address(self, user_id: str, data: AddressIn) -> Address:
        with self.addresses.lock:
            address = Address(id=new_id(), user_id=user_id, **data.model_dump())
            if address.is_default:
                self._clear_other_defaults(user_id, address.id)
            self.addresses.insert(address)
        return address

    def update_address(self, user_id: str, address_id: str, data: AddressUpdate) -> Address:
        with self.addresses.lock:
            existing = self.require_address(user_id, address_id)
            updated = _merge(Address, existing, data.model_dump(exclude_unset=True))
            if updated.is_default:
                self._clear_other_defaults(user_id, address_id)
            self.addresses.replace(updated)
        return updated

    def delete_address(self, user_id: str, address_id: str) -> None:
        with self.addresses.lock:
            self.require_address(user_id, address_id)
            self.addresses.delete(address_id)


# Support

SUPPORT_STATUSES = get_args(SupportStatus)


class SupportService:
    def __init__(self, db: Database):
        self.messages: Collection[SupportMessage] = db["supportmessage"]

    def create_support_message(self, data: SupportMessageIn) -> SupportMessage:
        message = SupportMessage(
            id=new_id(),
            name=data.name,
            email=str(data.email),
            phone=data.phone or None,
            subject=data.subject or None,
            message=data.message,
        )
        self.messages.insert(message)
        logger.info("Support ticket %s opened by %s", message.id, message.email)
        return message

    def get_all_support_messages(self) -> List[SupportMessage]:
        return _newest_first(self.messages.find())

    def update_support_message_status(self, message_id: str, status: str) -> SupportMessage:
        status = SUPPORT_STATUS_ALIASES.get(status, status)
        if status not in SUPPORT_STATUSES:
            raise ValidationError("Invalid support status")
        with self.messages.lock:
            message = self.messages.get(message_id)
            if not message:
                raise NotFoundError("Support message not found")
            return self.messages.replace(message.model_copy(update={"status": status}))


@dataclass
class Services:
    db: Database
    users: UserService
    artisans: ArtisanService
    products: ProductService
    reviews: ReviewService
    cart: CartService
    orders: OrderService
    addresses: AddressService
    support: SupportService


def build_services(db: Database) -> Services:
    users = UserService(db)
    artisans = ArtisanService(db)
    products = ProductService(db, artisans)
    cart = CartService(db, products)
    return Services(
        db=db,
        users=users,
        artisans=artisans,
        products=products,
        reviews=ReviewService(db, users, products),
        cart=cart,
        orders=OrderService(db, users, products, cart),
        addresses=AddressService(db),
        support=SupportService(db),
    )
