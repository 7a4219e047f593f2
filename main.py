import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Header, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import config
from constants import CATEGORIES, COUNTRIES, CURRENCIES, CURRENCY_RATES, MATERIALS
from database import Database
from errors import (
    ErrorKind,
    ForbiddenError,
    InternalError,
    NotFoundError,
    StoreError,
    UnauthorizedError,
    first_error_message,
)
from mailer import send_email, support_notification
from schemas import (
    Address,
    AddressIn,
    AddressUpdate,
    Artisan,
    ArtisanIn,
    ArtisanUpdate,
    AuthResponse,
    CartItem,
    CartItemIn,
    CartItemUpdate,
    CartLine,
    FeaturedDTO,
    LoginDTO,
    Order,
    OrderIn,
    OrderStatusDTO,
    OrderWithCustomer,
    Product,
    ProductFilters,
    ProductIn,
    ProductUpdate,
    ProductWithArtisan,
    PublicUser,
    RegisterDTO,
    Review,
    ReviewIn,
    ReviewWithUser,
    SupportMessage,
    SupportMessageIn,
    SupportStatusDTO,
)
from seed import seed_admin, seed_demo_customer, seed_sample_data
from services import Services, build_services
from sessions import SessionData, SessionManager

# Logging
logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger("artisan_store")


# Dependencies
def get_services(request: Request) -> Services:
    return request.app.state.services


def get_sessions(request: Request) -> SessionManager:
    return request.app.state.sessions


def bearer_token(authorization: Optional[str] = Header(default=None)) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def require_auth(token: Optional[str] = Depends(bearer_token),
                 sessions: SessionManager = Depends(get_sessions)) -> SessionData:
    session = sessions.get_session(token) if token else None
    if not session:
        raise UnauthorizedError()
    return session


def require_admin(session: SessionData = Depends(require_auth)) -> SessionData:
    if not session.is_admin:
        raise ForbiddenError("Admin access required")
    return session


router = APIRouter()


# Health and config
@router.get("/")
def root():
    return {"name": config.STORE_NAME, "status": "ok"}


@router.get("/api/config")
def get_config():
    return {
        "storeName": config.STORE_NAME,
        "currency": config.PRIMARY_CURRENCY,
        "currencies": CURRENCIES,
    }


@router.get("/api/config/countries", response_model=List[str])
def get_countries():
    return COUNTRIES


@router.get("/api/config/materials", response_model=List[str])
def get_materials():
    return MATERIALS


@router.get("/api/config/categories", response_model=List[str])
def get_categories():
    return CATEGORIES


@router.get("/api/config/currencies")
def get_currencies():
    return CURRENCIES


@router.get("/api/config/currency-rates")
@router.get("/api/currency-rates")
def get_currency_rates():
    # Mocked; a live rates API would plug in here
    return CURRENCY_RATES


# Auth
@router.post("/api/auth/register", response_model=AuthResponse)
def register(data: RegisterDTO, services: Services = Depends(get_services),
             sessions: SessionManager = Depends(get_sessions)):
    user = services.users.create_user(data)
    session_id = sessions.start(user)
    return AuthResponse(user=PublicUser.from_user(user), session_id=session_id)


@router.post("/api/auth/login", response_model=AuthResponse)
def login(data: LoginDTO, services: Services = Depends(get_services),
          sessions: SessionManager = Depends(get_sessions)):
    user = services.users.authenticate(data.email, data.password)
    session_id = sessions.start(user)
    return AuthResponse(user=PublicUser.from_user(user), session_id=session_id)


@router.post("/api/auth/logout")
def logout(session: SessionData = Depends(require_auth), token: Optional[str] = Depends(bearer_token),
           sessions: SessionManager = Depends(get_sessions)):
    sessions.delete_session(token)
    logger.info("Session closed for %s", session.email)
    return {"message": "Logged out successfully"}


@router.get("/api/auth/me", response_model=PublicUser)
def me(session: SessionData = Depends(require_auth), services: Services = Depends(get_services)):
    user = services.users.get_user(session.user_id)
    if not user:
        raise NotFoundError("User not found")
    return PublicUser.from_user(user)


# Products
@router.get("/api/products", response_model=List[Product])
def list_products(search: Optional[str] = None, country: Optional[str] = None,
                  material: Optional[str] = None, category: Optional[str] = None,
                  services: Services = Depends(get_services)):
    filters = ProductFilters(search=search, country=country, material=material, category=category)
    return services.products.get_products(filters)


@router.get("/api/admin/products", response_model=List[Product])
def admin_list_products(admin: SessionData = Depends(require_admin), services: Services = Depends(get_services)):
    return services.products.get_products()


@router.get("/api/products/featured", response_model=List[Product])
def featured_products(services: Services = Depends(get_services)):
    return services.products.get_featured_products()


@router.get("/api/products/{product_id}", response_model=ProductWithArtisan)
def get_product(product_id: str, services: Services = Depends(get_services)):
    product = services.products.require_product(product_id)
    return services.products.with_artisan(product)


@router.post("/api/products", response_model=Product)
@router.post("/api/admin/products", response_model=Product, include_in_schema=False)
def create_product(data: ProductIn, admin: SessionData = Depends(require_admin),
                   services: Services = Depends(get_services)):
    return services.products.create_product(data)


@router.put("/api/products/{product_id}", response_model=Product)
@router.put("/api/admin/products/{product_id}", response_model=Product, include_in_schema=False)
def update_product(product_id: str, data: ProductUpdate, admin: SessionData = Depends(require_admin),
                   services: Services = Depends(get_services)):
    return services.products.update_product(product_id, data)


@router.delete("/api/products/{product_id}")
@router.delete("/api/admin/products/{product_id}", include_in_schema=False)
def delete_product(product_id: str, admin: SessionData = Depends(require_admin),
                   services: Services = Depends(get_services)):
    services.products.delete_product(product_id)
    return {"message": "Product deleted successfully"}


@router.put("/api/products/{product_id}/featured", response_model=Product)
@router.put("/api/admin/products/{product_id}/featured", response_model=Product, include_in_schema=False)
def toggle_featured(product_id: str, data: FeaturedDTO, admin: SessionData = Depends(require_admin),
                    services: Services = Depends(get_services)):
    return services.products.toggle_product_featured(product_id, data.featured)


# Reviews
@router.get("/api/products/{product_id}/reviews", response_model=List[ReviewWithUser])
def product_reviews(product_id: str, services: Services = Depends(get_services)):
    return services.reviews.get_product_reviews(product_id)


@router.post("/api/products/{product_id}/reviews", response_model=Review, status_code=201)
def create_review(product_id: str, data: ReviewIn, session: SessionData = Depends(require_auth),
                  services: Services = Depends(get_services)):
    return services.reviews.create_review(product_id, session.user_id, data)


# Artisans
@router.get("/api/artisans", response_model=List[Artisan])
def list_artisans(services: Services = Depends(get_services)):
    return services.artisans.get_artisans()


@router.get("/api/artisans/{artisan_id}", response_model=Artisan)
def get_artisan(artisan_id: str, services: Services = Depends(get_services)):
    return services.artisans.require_artisan(artisan_id)


@router.get("/api/artisans/{artisan_id}/products", response_model=List[ProductWithArtisan])
def artisan_products(artisan_id: str, services: Services = Depends(get_services)):
    products = services.products.get_products_by_artisan_id(artisan_id)
    return [services.products.with_artisan(p) for p in products]


@router.post("/api/artisans", response_model=Artisan, status_code=201)
def create_artisan(data: ArtisanIn, admin: SessionData = Depends(require_admin),
                   services: Services = Depends(get_services)):
    return services.artisans.create_artisan(data)


@router.put("/api/artisans/{artisan_id}", response_model=Artisan)
def update_artisan(artisan_id: str, data: ArtisanUpdate, admin: SessionData = Depends(require_admin),
                   services: Services = Depends(get_services)):
    return services.artisans.update_artisan(artisan_id, data)


@router.delete("/api/artisans/{artisan_id}", status_code=204)
def delete_artisan(artisan_id: str, admin: SessionData = Depends(require_admin),
                   services: Services = Depends(get_services)):
    services.artisans.delete_artisan(artisan_id)
    return Response(status_code=204)


# Cart
@router.get("/api/cart", response_model=List[CartLine])
def get_cart(session: SessionData = Depends(require_auth), services: Services = Depends(get_services)):
    lines = []
    for item in services.cart.get_user_cart(session.user_id):
        product = services.products.get_product(item.product_id)
        lines.append(CartLine(
            **item.model_dump(),
            product=services.products.with_artisan(product) if product else None,
        ))
    return lines


@router.post("/api/cart", response_model=CartItem)
def add_to_cart(data: CartItemIn, session: SessionData = Depends(require_auth),
                services: Services = Depends(get_services)):
    return services.cart.add_to_cart(session.user_id, data)


@router.put("/api/cart/{item_id}", response_model=CartItem)
def update_cart_item(item_id: str, data: CartItemUpdate, session: SessionData = Depends(require_auth),
                     services: Services = Depends(get_services)):
    return services.cart.update_cart_item(session.user_id, item_id, data.quantity)


@router.delete("/api/cart/{item_id}")
def remove_from_cart(item_id: str, session: SessionData = Depends(require_auth),
                     services: Services = Depends(get_services)):
    services.cart.remove_from_cart(session.user_id, item_id)
    return {"message": "Item removed from cart"}


@router.delete("/api/cart")
def clear_cart(session: SessionData = Depends(require_auth), services: Services = Depends(get_services)):
    services.cart.clear_cart(session.user_id)
    return {"message": "Cart cleared"}


# Orders
@router.get("/api/orders", response_model=List[Order])
def list_orders(session: SessionData = Depends(require_auth), services: Services = Depends(get_services)):
    return services.orders.get_user_orders(session.user_id)


@router.post("/api/orders", response_model=Order)
def create_order(data: OrderIn, session: SessionData = Depends(require_auth),
                 services: Services = Depends(get_services)):
    return services.orders.place_order(session.user_id, data)


@router.put("/api/orders/{order_id}/cancel", response_model=Order)
def cancel_order(order_id: str, session: SessionData = Depends(require_auth),
                 services: Services = Depends(get_services)):
    return services.orders.cancel_order(order_id, session.user_id, is_admin=session.is_admin)


@router.get("/api/admin/orders", response_model=List[OrderWithCustomer])
def admin_list_orders(admin: SessionData = Depends(require_admin), services: Services = Depends(get_services)):
    return [services.orders.with_customer(o) for o in services.orders.get_all_orders()]


@router.get("/api/admin/orders/{order_id}", response_model=OrderWithCustomer)
def admin_get_order(order_id: str, admin: SessionData = Depends(require_admin),
                    services: Services = Depends(get_services)):
    return services.orders.with_customer(services.orders.require_order(order_id))


@router.put("/api/admin/orders/{order_id}/status", response_model=OrderWithCustomer)
def admin_update_order_status(order_id: str, data: OrderStatusDTO, admin: SessionData = Depends(require_admin),
                              services: Services = Depends(get_services)):
    order = services.orders.update_order_status(order_id, data.status, data.tracking_number)
    return services.orders.with_customer(order)


@router.get("/api/admin/users/{user_id}", response_model=PublicUser)
def admin_get_user(user_id: str, admin: SessionData = Depends(require_admin),
                   services: Services = Depends(get_services)):
    user = services.users.get_user(user_id)
    if not user:
        raise NotFoundError("User not found")
    return PublicUser.from_user(user)


# Addresses
@router.get("/api/addresses", response_model=List[Address])
def list_addresses(session: SessionData = Depends(require_auth), services: Services = Depends(get_services)):
    return services.addresses.get_user_addresses(session.user_id)


@router.post("/api/addresses", response_model=Address)
def create_address(data: AddressIn, session: SessionData = Depends(require_auth),
                   services: Services = Depends(get_services)):
    return services.addresses.create_address(session.user_id, data)


@router.put("/api/addresses/{address_id}", response_model=Address)
def update_address(address_id: str, data: AddressUpdate, session: SessionData = Depends(require_auth),
                   services: Services = Depends(get_services)):
    return services.addresses.update_address(session.user_id, address_id, data)


@router.delete("/api/addresses/{address_id}")
def delete_address(address_id: str, session: SessionData = Depends(require_auth),
                   services: Services = Depends(get_services)):
    services.addresses.delete_address(session.user_id, address_id)
    return {"message": "Address deleted successfully"}


# Support
@router.post("/api/support")
def create_support_message(data: SupportMessageIn, services: Services = Depends(get_services)):
    message = services.support.create_support_message(data)
    email_sent = send_email(support_notification(
        message.name, message.email, message.phone, message.message, subject=message.subject,
    ))
    return {"id": message.id, "message": "Support message sent successfully", "emailSent": email_sent}


@router.get("/api/support", response_model=List[SupportMessage])
@router.get("/api/admin/support", response_model=List[SupportMessage])
def list_support_messages(admin: SessionData = Depends(require_admin), services: Services = Depends(get_services)):
    return services.support.get_all_support_messages()


@router.put("/api/support/{message_id}/status", response_model=SupportMessage)
@router.put("/api/admin/support/{message_id}/status", response_model=SupportMessage)
def update_support_status(message_id: str, data: SupportStatusDTO, admin: SessionData = Depends(require_admin),
                          services: Services = Depends(get_services)):
    return services.support.update_support_message_status(message_id, data.status)


# Error handlers
async def store_error_handler(request: Request, exc: StoreError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"message": first_error_message(exc.errors()), "kind": ErrorKind.VALIDATION.value},
    )


async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error: %s", exc)
    error = InternalError()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    app.state.sessions.clear()
    app.state.services.db.close()


def create_app(seed: Optional[bool] = None, db: Optional[Database] = None) -> FastAPI:
    """Build the API with its own store and session table."""
    app = FastAPI(title=f"{config.STORE_NAME} API", version="1.0.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in config.ALLOWED_ORIGINS] if config.ALLOWED_ORIGINS else ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(StoreError, store_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    services = build_services(db or Database())
    if config.SEED_SAMPLE_DATA if seed is None else seed:
        seed_sample_data(services)
        seed_admin(services, config.ADMIN_EMAIL, config.ADMIN_PASSWORD)
        seed_demo_customer(services, config.DEMO_USER_EMAIL, config.DEMO_USER_PASSWORD)
    app.state.services = services
    app.state.sessions = SessionManager()

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
