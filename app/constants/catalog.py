"""Default product catalog used as AI reply context until one is configured."""

from app.schemas.settings import Product

DEFAULT_PRODUCTS = [
    Product(
        id="101",
        name="Custom Engraved Wooden Watch",
        price=2499,
        description="Handcrafted sandalwood watch.",
    ),
    Product(
        id="102",
        name="Personalized Leather Wallet",
        price=1299,
        description="Genuine leather with embossing.",
    ),
    Product(
        id="103",
        name="Ceramic Magic Photo Mug",
        price=499,
        description="Reveals photo when hot.",
    ),
]
