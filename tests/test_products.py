import pytest

from schemas import ProductFilters, ProductIn

NEW_PRODUCT = {
    "name": "Brass Lantern",
    "description": "Hand-hammered brass lantern",
    "originalPrice": 2200,
    "discountedPrice": 1900,
    "category": "Home Decor",
    "material": "Metal",
    "countryOfOrigin": "Morocco",
    "artisanId": "artisan-1",
}


def ids(products):
    return sorted(p["id"] for p in products)


def test_list_all_seeded_products(client):
    resp = client.get("/api/products")
    assert resp.status_code == 200
    assert ids(resp.json()) == [f"sample-{n}" for n in range(1, 7)]


def test_filters_are_case_insensitive(client):
    assert ids(client.get("/api/products", params={"country": "india"}).json()) == ["sample-1", "sample-6"]
    assert ids(client.get("/api/products", params={"material": "CERAMIC"}).json()) == ["sample-2"]
    assert ids(client.get("/api/products", params={"category": "accessories"}).json()) == ["sample-3", "sample-4"]


def test_search_matches_any_text_field(client):
    assert ids(client.get("/api/products", params={"search": "scarf"}).json()) == ["sample-1"]
    # country of origin
    assert ids(client.get("/api/products", params={"search": "thai"}).json()) == ["sample-5"]
    # blank search is ignored
    assert len(client.get("/api/products", params={"search": "  "}).json()) == 6


@pytest.mark.parametrize("filters", [
    {"country": "India", "category": "Textiles"},
    {"material": "Wood", "country": "Morocco"},
    {"category": "Home & Kitchen", "search": "bamboo"},
    {"search": "hand", "country": "Peru"},
    {"country": "India", "material": "Ceramic"},
])
def test_filter_result_is_exactly_the_matching_subset(services, filters):
    everything = services.products.get_products()
    result = services.products.get_products(ProductFilters(**filters))

    def matches(p):
        if "country" in filters and p.country_of_origin.lower() != filters["country"].lower():
            return False
        if "material" in filters and p.material.lower() != filters["material"].lower():
            return False
        if "category" in filters and p.category.lower() != filters["category"].lower():
            return False
        if "search" in filters:
            term = filters["search"].lower()
            fields = (p.name, p.description, p.category, p.material, p.country_of_origin)
            if not any(term in f.lower() for f in fields):
                return False
        return True

    assert sorted(p.id for p in result) == sorted(p.id for p in everything if matches(p))


def test_featured_products(client):
    assert ids(client.get("/api/products/featured").json()) == ["sample-1", "sample-2", "sample-6"]


def test_get_product_embeds_artisan(client):
    resp = client.get("/api/products/sample-1")
    assert resp.status_code == 200
    body = resp.json()
    assert body["asin"] == "HSC001"
    assert body["discountedPrice"] == 2000
    assert body["artisan"]["name"] == "Ravi Kumar"


def test_get_missing_product(client):
    resp = client.get("/api/products/nope")
    assert resp.status_code == 404
    assert resp.json() == {"message": "Product not found", "kind": "not_found"}


def test_create_product_requires_admin(client, user):
    assert client.post("/api/products", json=NEW_PRODUCT).status_code == 401
    assert client.post("/api/products", json=NEW_PRODUCT, headers=user["headers"]).status_code == 403


def test_admin_creates_product_with_generated_asin(client, admin_headers):
    resp = client.post("/api/products", json=NEW_PRODUCT, headers=admin_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["asin"].startswith("ASIN") and len(body["asin"]) == 13
    assert body["inStock"] is True
    assert body["featured"] is False
    assert client.get(f"/api/products/{body['id']}").status_code == 200


def test_discount_must_be_below_original(client, admin_headers):
    resp = client.post("/api/products", json={**NEW_PRODUCT, "discountedPrice": 2500}, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Discounted price must be lower than original price"


def test_duplicate_asin_rejected(client, admin_headers):
    resp = client.post("/api/products", json={**NEW_PRODUCT, "asin": "HSC001"}, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "ASIN already exists"


def test_update_product_merges_fields(client, admin_headers):
    resp = client.put("/api/products/sample-3", json={"inStock": False}, headers=admin_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["inStock"] is False
    assert body["name"] == "Wooden Jewelry Box"
    assert body["asin"] == "WJB003"


def test_update_cannot_break_discount_rule(client, admin_headers):
    resp = client.put("/api/products/sample-1", json={"originalPrice": 1500}, headers=admin_headers)
    assert resp.status_code == 400
    assert client.get("/api/products/sample-1").json()["originalPrice"] == 2500


def test_toggle_featured(client, admin_headers):
    resp = client.put("/api/products/sample-3/featured", json={"featured": True}, headers=admin_headers)
    assert resp.status_code == 200
    assert "sample-3" in ids(client.get("/api/products/featured").json())


def test_delete_product(client, admin_headers):
    assert client.delete("/api/products/sample-5", headers=admin_headers).status_code == 200
    assert client.get("/api/products/sample-5").status_code == 404
    assert client.delete("/api/products/sample-5", headers=admin_headers).status_code == 404


def test_admin_product_aliases(client, admin_headers):
    assert len(client.get("/api/admin/products", headers=admin_headers).json()) == 6
    resp = client.post("/api/admin/products", json=NEW_PRODUCT, headers=admin_headers)
    assert resp.status_code == 200
    product_id = resp.json()["id"]
    resp = client.put(f"/api/admin/products/{product_id}", json={"name": "Copper Lantern"}, headers=admin_headers)
    assert resp.json()["name"] == "Copper Lantern"
    assert client.delete(f"/api/admin/products/{product_id}", headers=admin_headers).status_code == 200


def test_admin_product_list_requires_admin(client, user):
    assert client.get("/api/admin/products", headers=user["headers"]).status_code == 403


def test_product_in_rejects_non_positive_price():
    with pytest.raises(ValueError):
        ProductIn(name="x", description="y", original_price=0, category="Art", material="Paper",
                  country_of_origin="Japan")
