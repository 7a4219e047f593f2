"""
Sample catalog and bootstrap admin account, loaded when the app starts.
"""
import logging

from schemas import ArtisanIn, Dimensions, ProductIn, RegisterDTO, Weight
from services import Services

logger = logging.getLogger("artisan_store.seed")

SAMPLE_ARTISANS = {
    "artisan-1": ArtisanIn(
        name="Ravi Kumar",
        bio="A master weaver from Rajasthan known for intricate textile designs.",
        location="Jaipur, India",
        specialization="Handloom weaving",
        experience="25 years",
        story="Ravi learned to weave on his grandfather's pit loom and now trains young weavers in his village.",
    ),
    "artisan-2": ArtisanIn(
        name="Sofia Alvarez",
        bio="A ceramic artist blending traditional Andean techniques with modern forms.",
        location="Cusco, Peru",
        specialization="Ceramics",
        experience="12 years",
        story="Sofia digs her own clay near the Urubamba river and fires every piece in a wood kiln.",
    ),
}

SAMPLE_PRODUCTS = {
    "sample-1": ProductIn(
        asin="HSC001",
        name="Handwoven Scarf",
        description="Beautiful handwoven scarf made from organic cotton",
        original_price=2500,
        discounted_price=2000,
        category="Textiles",
        material="Cotton",
        country_of_origin="India",
        artisan_id="artisan-1",
        images=["https://images.unsplash.com/photo-1601924994987-69e26d50dc26?w=400"],
        dimensions=Dimensions(length=180, width=30, height=0.5, unit="cm"),
        weight=Weight(value=150, unit="g"),
        featured=True,
    ),
    "sample-2": ProductIn(
        asin="CBS002",
        name="Ceramic Bowl",
        description="Hand-thrown ceramic bowl with traditional glaze",
        original_price=1800,
        discounted_price=1500,
        category="Home & Kitchen",
        material="Ceramic",
        country_of_origin="Peru",
        artisan_id="artisan-2",
        images=["https://images.unsplash.com/photo-1578662996442-48f60103fc96?w=400"],
        dimensions=Dimensions(length=15, width=15, height=8, unit="cm"),
        weight=Weight(value=300, unit="g"),
        featured=True,
    ),
    "sample-3": ProductIn(
        asin="WJB003",
        name="Wooden Jewelry Box",
        description="Intricately carved wooden jewelry box with multiple compartments",
        original_price=3200,
        discounted_price=2800,
        category="Accessories",
        material="Wood",
        country_of_origin="Morocco",
        artisan_id="artisan-1",
        dimensions=Dimensions(length=20, width=15, height=10, unit="cm"),
        weight=Weight(value=500, unit="g"),
    ),
    "sample-4": ProductIn(
        asin="LHB004",
        name="Leather Handbag",
        description="Handcrafted leather handbag with traditional embossing",
        original_price=4500,
        discounted_price=4000,
        category="Accessories",
        material="Leather",
        country_of_origin="Guatemala",
        artisan_id="artisan-2",
        dimensions=Dimensions(length=35, width=12, height=25, unit="cm"),
        weight=Weight(value=800, unit="g"),
    ),
    "sample-5": ProductIn(
        asin="BCB005",
        name="Bamboo Cutting Board",
        description="Eco-friendly bamboo cutting board with natural finish",
        original_price=1200,
        discounted_price=1000,
        category="Home & Kitchen",
        material="Bamboo",
        country_of_origin="Thailand",
        artisan_id="artisan-1",
        dimensions=Dimensions(length=30, width=20, height=2, unit="cm"),
        weight=Weight(value=400, unit="g"),
    ),
    "sample-6": ProductIn(
        asin="TWH006",
        name="Textile Wall Hanging",
        description="Colorful handwoven textile wall hanging with geometric patterns",
        original_price=3500,
        discounted_price=3000,
        category="Textiles",
        material="Fabric",
        country_of_origin="India",
        artisan_id="artisan-2",
        dimensions=Dimensions(length=60, width=40, height=1, unit="cm"),
        weight=Weight(value=200, unit="g"),
        featured=True,
    ),
}


def seed_sample_data(services: Services):
    for artisan_id, data in SAMPLE_ARTISANS.items():
        if not services.artisans.get_artisan_by_id(artisan_id):
            services.artisans.create_artisan(data, artisan_id=artisan_id)
    for product_id, data in SAMPLE_PRODUCTS.items():
        if not services.products.get_product(product_id):
            services.products.create_product(data, product_id=product_id)
    logger.info("Seeded %d artisans and %d products", len(SAMPLE_ARTISANS), len(SAMPLE_PRODUCTS))


def seed_admin(services: Services, email: str, password: str):
    if services.users.get_user_by_email(email):
        return
    admin = RegisterDTO(email=email, password=password, first_name="Admin", last_name="User")
    services.users.create_user(admin, is_admin=True)
    logger.info("Admin account %s created", email)


def seed_demo_customer(services: Services, email: str, password: str):
    if services.users.get_user_by_email(email):
        return
    customer = RegisterDTO(email=email, password=password, first_name="John", last_name="Doe")
    services.users.create_user(customer)
    logger.info("Demo customer %s created", email)
