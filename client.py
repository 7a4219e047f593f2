"""
Storefront client for the Artisan Store API.

Wraps httpx with a small query cache: reads are cached by path + params and every
mutation invalidates the paths whose data it changes, so the next read goes back to
the server. Also carries the bearer session and the currency formatting used when
showing prices.
"""
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

import httpx

from constants import CURRENCIES

_ERROR_PREFIX = re.compile(r"^\s*error:\s*", re.IGNORECASE)
_STATUS_PREFIX = re.compile(r"^\s*\d{3}\s*[:\-]?\s*")

FRIENDLY_MESSAGES = {
    "Failed to fetch": "Network connection issue",
    "Internal server error": "Something went wrong on our end",
}


def clean_error_message(message: Optional[str]) -> str:
    """Strip "Error:" prefixes and leading status codes such as "400: "."""
    text = message or ""
    while True:
        stripped = _STATUS_PREFIX.sub("", _ERROR_PREFIX.sub("", text), count=1)
        if stripped == text:
            break
        text = stripped
    for raw, friendly in FRIENDLY_MESSAGES.items():
        text = text.replace(raw, friendly)
    return text.strip() or "Something went wrong"


class StoreAPIError(Exception):
    def __init__(self, status_code: int, message: str, kind: Optional[str] = None):
        self.status_code = status_code
        self.kind = kind
        self.message = clean_error_message(message)
        super().__init__(f"{status_code}: {self.message}")


CacheKey = Tuple[str, Tuple[Tuple[str, Any], ...]]


class QueryCache:
    def __init__(self):
        self._entries: Dict[CacheKey, Any] = {}

    @staticmethod
    def key(path: str, params: Optional[dict] = None) -> CacheKey:
        clean = {k: v for k, v in (params or {}).items() if v is not None}
        return path, tuple(sorted(clean.items()))

    def get(self, key: CacheKey, default=None):
        return self._entries.get(key, default)

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def set(self, key: CacheKey, value: Any):
        self._entries[key] = value

    def invalidate(self, *prefixes: str) -> int:
        doomed = [k for k in self._entries if any(k[0].startswith(p) for p in prefixes)]
        for k in doomed:
            del self._entries[k]
        return len(doomed)

    def clear(self):
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class CurrencyFormatter:
    def __init__(self, rates: Dict[str, float], currency: str = "INR"):
        self.rates = rates
        self.currency = currency

    def symbol(self, code: str) -> str:
        for c in CURRENCIES:
            if c["code"] == code:
                return c["symbol"]
        return code

    def convert(self, price, currency: Optional[str] = None) -> float:
        rate = self.rates.get(currency or self.currency) or 1
        return float(price) * rate

    def format_price(self, price, currency: Optional[str] = None) -> str:
        code = currency or self.currency
        return f"{self.symbol(code)} {self.convert(price, code):,.0f}"


def effective_price(product: dict) -> float:
    discounted = product.get("discountedPrice")
    if discounted is not None:
        return float(discounted)
    return float(product["originalPrice"])


class StoreClient:
    def __init__(self, base_url: str = "http://localhost:8000", http: Optional[httpx.Client] = None,
                 timeout: float = 10.0):
        self.http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self._owns_http = http is None
        self.cache = QueryCache()
        self.session_id: Optional[str] = None
        self.user: Optional[dict] = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def close(self):
        if self._owns_http:
            self.http.close()

    # Transport

    def _headers(self) -> Dict[str, str]:
        if self.session_id:
            return {"Authorization": f"Bearer {self.session_id}"}
        return {}

    def request(self, method: str, path: str, params: Optional[dict] = None, json: Any = None) -> Any:
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        resp = self.http.request(method, path, params=params or None, json=json, headers=self._headers())
        if resp.is_error:
            try:
                body = resp.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                message, kind = body.get("message", resp.reason_phrase), body.get("kind")
            else:
                message, kind = resp.text or resp.reason_phrase, None
            raise StoreAPIError(resp.status_code, message, kind)
        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    def query(self, path: str, params: Optional[dict] = None, refresh: bool = False) -> Any:
        key = self.cache.key(path, params)
        if not refresh and key in self.cache:
            return self.cache.get(key)
        data = self.request("GET", path, params=params)
        self.cache.set(key, data)
        return data

    def mutate(self, method: str, path: str, json: Any = None, invalidates: Iterable[str] = ()) -> Any:
        data = self.request(method, path, json=json)
        self.cache.invalidate(*invalidates)
        return data

    # Auth

    def _start_session(self, payload: dict) -> dict:
        self.session_id = payload["sessionId"]
        self.user = payload["user"]
        self.cache.clear()
        return self.user

    def register(self, email: str, password: str, first_name: str, last_name: str) -> dict:
        payload = self.request("POST", "/api/auth/register", json={
            "email": email,
            "password": password,
            "firstName": first_name,
            "lastName": last_name,
        })
        return self._start_session(payload)

    def login(self, email: str, password: str) -> dict:
        payload = self.request("POST", "/api/auth/login", json={"email": email, "password": password})
        return self._start_session(payload)

    def logout(self):
        try:
            if self.session_id:
                self.request("POST", "/api/auth/logout")
        finally:
            self.session_id = None
            self.user = None
            self.cache.clear()

    def me(self) -> Optional[dict]:
        if not self.session_id:
            return None
        try:
            return self.query("/api/auth/me")
        except StoreAPIError as exc:
            if exc.status_code == 401:
                self.session_id = None
                self.user = None
                return None
            raise

    @property
    def is_authenticated(self) -> bool:
        return self.session_id is not None

    # Catalog

    def products(self, search: Optional[str] = None, country: Optional[str] = None,
                 material: Optional[str] = None, category: Optional[str] = None) -> List[dict]:
        params = {"search": search, "country": country, "material": material, "category": category}
        return self.query("/api/products", params)

    def featured_products(self) -> List[dict]:
        return self.query("/api/products/featured")

    def product(self, product_id: str) -> dict:
        return self.query(f"/api/products/{product_id}")

    def reviews(self, product_id: str) -> List[dict]:
        return self.query(f"/api/products/{product_id}/reviews")

    def add_review(self, product_id: str, rating: int, comment: Optional[str] = None) -> dict:
        path = f"/api/products/{product_id}/reviews"
        return self.mutate("POST", path, json={"rating": rating, "comment": comment}, invalidates=[path])

    def artisans(self) -> List[dict]:
        return self.query("/api/artisans")

    # Cart

    def cart(self) -> List[dict]:
        if not self.session_id:
            return []
        return self.query("/api/cart")

    def add_to_cart(self, product_id: str, quantity: int = 1) -> dict:
        return self.mutate("POST", "/api/cart", json={"productId": product_id, "quantity": quantity},
                           invalidates=["/api/cart"])

    def update_cart_item(self, item_id: str, quantity: int) -> dict:
        return self.mutate("PUT", f"/api/cart/{item_id}", json={"quantity": quantity}, invalidates=["/api/cart"])

    def remove_from_cart(self, item_id: str) -> dict:
        return self.mutate("DELETE", f"/api/cart/{item_id}", invalidates=["/api/cart"])

    def clear_cart(self) -> dict:
        return self.mutate("DELETE", "/api/cart", invalidates=["/api/cart"])

    def cart_total(self) -> float:
        total = 0.0
        for line in self.cart():
            if line.get("product"):
                total += effective_price(line["product"]) * line["quantity"]
        return total

    def cart_count(self) -> int:
        return sum(line["quantity"] for line in self.cart())

    # Orders

    def orders(self) -> List[dict]:
        return self.query("/api/orders")

    def place_order(self, items: Optional[List[dict]] = None, total_amount: Optional[float] = None,
                    shipping_address: Optional[dict] = None, payment_method: str = "cod",
                    currency: Optional[str] = None) -> dict:
        payload = {
            "items": items or [],
            "totalAmount": total_amount,
            "shippingAddress": shipping_address,
            "paymentMethod": payment_method,
            "currency": currency,
        }
        return self.mutate("POST", "/api/orders", json=payload, invalidates=["/api/orders", "/api/cart"])

    def cancel_order(self, order_id: str) -> dict:
        return self.mutate("PUT", f"/api/orders/{order_id}/cancel", invalidates=["/api/orders"])

    # Currency

    def currency_rates(self) -> Dict[str, float]:
        return self.query("/api/config/currency-rates")

    def currency(self, code: str = "INR") -> CurrencyFormatter:
        return CurrencyFormatter(self.currency_rates(), code)
