"""Static catalog vocabularies served under /api/config."""

COUNTRIES = [
    "India",
    "Peru",
    "Morocco",
    "Thailand",
    "Guatemala",
    "Mexico",
    "Kenya",
    "Nepal",
    "Indonesia",
    "Turkey",
]

MATERIALS = [
    "Wood",
    "Textile",
    "Cotton",
    "Silk",
    "Fabric",
    "Ceramic",
    "Metal",
    "Leather",
    "Bamboo",
    "Stone",
    "Glass",
]

CATEGORIES = [
    "Textiles",
    "Home & Kitchen",
    "Accessories",
    "Jewelry",
    "Home Decor",
    "Art",
]

CURRENCIES = [
    {"code": "INR", "symbol": "₹", "name": "Indian Rupee"},
    {"code": "USD", "symbol": "$", "name": "US Dollar"},
    {"code": "EUR", "symbol": "€", "name": "Euro"},
    {"code": "AED", "symbol": "د.إ", "name": "UAE Dirham"},
]

# Mocked rates relative to INR
CURRENCY_RATES = {
    "INR": 1,
    "USD": 0.012,
    "EUR": 0.011,
    "AED": 0.044,
}
