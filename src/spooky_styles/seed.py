"""
Seed script: loads sample products, colors and inspirations.

Run with:
    flask --app spooky_styles.app seed

Products and inspirations are matched by name, so running the script again
does not create duplicates.
"""

import logging

from sqlalchemy import text

from spooky_styles.db import get_engine

logger = logging.getLogger(__name__)

PRODUCTS = [
    {
        "name": "Witch's Midnight Cascade",
        "description": "Long, flowing black wig with purple highlights. Perfect for a mysterious witch look.",
        "price_cents": 2999,
        "promotional_price_cents": 2499,
        "category": "wig",
        "theme": "witch",
        "stock_quantity": 50,
        "is_accessory": False,
        "colors": [("Midnight Black", "#0B0B0F"), ("Plum", "#5B2A6E")],
    },
    {
        "name": "Zombie Decay Dreads",
        "description": "Matted, distressed dreadlocks in grey and green tones.",
        "price_cents": 3499,
        "promotional_price_cents": None,
        "category": "wig",
        "theme": "zombie",
        "stock_quantity": 35,
        "is_accessory": False,
        "colors": [("Rot Green", "#5E7042")],
    },
    {
        "name": "Vampire Crimson Elegance",
        "description": "Sleek black wig with crimson streaks for undead royalty.",
        "price_cents": 3999,
        "promotional_price_cents": 3299,
        "category": "wig",
        "theme": "vampire",
        "stock_quantity": 42,
        "is_accessory": False,
        "colors": [("Crimson", "#8B0000"), ("Raven", "#1C1C1C")],
    },
    {
        "name": "Skeleton Bone White",
        "description": "Short, spiky platinum wig with a bone-white finish.",
        "price_cents": 2799,
        "promotional_price_cents": None,
        "category": "wig",
        "theme": "skeleton",
        "stock_quantity": 28,
        "is_accessory": False,
        "colors": [],
    },
    {
        "name": "Ghostly Ethereal Waves",
        "description": "Translucent silver waves that shimmer like mist.",
        "price_cents": 3199,
        "promotional_price_cents": 2699,
        "category": "wig",
        "theme": "ghost",
        "stock_quantity": 45,
        "is_accessory": False,
        "colors": [("Mist Silver", "#C0C6CC")],
    },
    {
        "name": "Classic Witch Hat",
        "description": "Tall pointed hat with a wide brim and buckle band.",
        "price_cents": 1499,
        "promotional_price_cents": 1199,
        "category": "hat",
        "theme": "witch",
        "stock_quantity": 75,
        "is_accessory": True,
        "colors": [],
    },
    {
        "name": "Vampire Fangs Deluxe",
        "description": "Custom-fit fangs with a realistic enamel look.",
        "price_cents": 999,
        "promotional_price_cents": None,
        "category": "accessory",
        "theme": "vampire",
        "stock_quantity": 100,
        "is_accessory": True,
        "colors": [],
    },
    {
        "name": "Zombie Brain Headband",
        "description": "Exposed-brain headband, guaranteed to turn heads.",
        "price_cents": 1299,
        "promotional_price_cents": 999,
        "category": "accessory",
        "theme": "zombie",
        "stock_quantity": 55,
        "is_accessory": True,
        "colors": [],
    },
    {
        "name": "Skeleton Skull Mask",
        "description": "Full-face skull mask with hollow eye sockets.",
        "price_cents": 1899,
        "promotional_price_cents": None,
        "category": "mask",
        "theme": "skeleton",
        "stock_quantity": 5,
        "is_accessory": False,
        "colors": [],
    },
    {
        "name": "Ghost Pale Face Kit",
        "description": "White base, grey contour and dark eye shadow.",
        "price_cents": 1599,
        "promotional_price_cents": None,
        "category": "makeup",
        "theme": "ghost",
        "stock_quantity": 0,
        "is_accessory": False,
        "colors": [],
    },
]

INSPIRATIONS = [
    {
        "name": "Classic Witch",
        "description": "Channel your inner sorceress with this timeless witch look.",
        "products": ["Witch's Midnight Cascade", "Classic Witch Hat"],
    },
    {
        "name": "Vampire Queen",
        "description": "Gothic glamour meets supernatural sophistication.",
        "products": ["Vampire Crimson Elegance", "Vampire Fangs Deluxe"],
    },
    {
        "name": "Zombie Walker",
        "description": "Fresh from the grave and ready to shamble.",
        "products": ["Zombie Decay Dreads", "Zombie Brain Headband"],
    },
    {
        "name": "Restless Spirit",
        "description": "Drift through the night with a pale, ghostly glow.",
        "products": ["Ghostly Ethereal Waves", "Ghost Pale Face Kit"],
    },
]


def _image_path(name: str, kind: str) -> str:
    slug = "".join(ch if ch.isalnum() else "-" for ch in name.lower()).strip("-")
    return f"/images/products/{slug}-{kind}.png"


def seed() -> None:
    with get_engine().begin() as conn:
        product_ids = {}
        for p in PRODUCTS:
            existing = conn.execute(
                text("SELECT id FROM products WHERE name = :name"), {"name": p["name"]}
            ).scalar()
            if existing:
                product_ids[p["name"]] = existing
                continue

            product_id = conn.execute(
                text("""
                    INSERT INTO products (
                        name, description, price_cents, promotional_price_cents, category, theme,
                        thumbnail_url, image_url, ar_image_url, stock_quantity, is_accessory,
                        created_at, updated_at
                    ) VALUES (
                        :name, :description, :price_cents, :promotional_price_cents, :category, :theme,
                        :thumbnail_url, :image_url, :ar_image_url, :stock_quantity, :is_accessory,
                        NOW(), NOW()
                    )
                    RETURNING id
                """),
                {
                    **{k: v for k, v in p.items() if k != "colors"},
                    "thumbnail_url": _image_path(p["name"], "thumb"),
                    "image_url": _image_path(p["name"], "main"),
                    "ar_image_url": _image_path(p["name"], "ar"),
                },
            ).scalar_one()
            product_ids[p["name"]] = product_id

            for color_name, color_hex in p["colors"]:
                conn.execute(
                    text("""
                        INSERT INTO product_colors (product_id, color_name, color_hex, created_at)
                        VALUES (:product_id, :color_name, :color_hex, NOW())
                    """),
                    {"product_id": product_id, "color_name": color_name, "color_hex": color_hex},
                )
        logger.info(f"Seeded {len(product_ids)} products")

        for insp in INSPIRATIONS:
            inspiration_id = conn.execute(
                text("SELECT id FROM costume_inspirations WHERE name = :name"), {"name": insp["name"]}
            ).scalar()
            if inspiration_id is None:
                inspiration_id = conn.execute(
                    text("""
                        INSERT INTO costume_inspirations (name, description, image_url, created_at)
                        VALUES (:name, :description, :image_url, NOW())
                        RETURNING id
                    """),
                    {
                        "name": insp["name"],
                        "description": insp["description"],
                        "image_url": _image_path(insp["name"], "inspiration"),
                    },
                ).scalar_one()

            for position, product_name in enumerate(insp["products"]):
                conn.execute(
                    text("""
                        INSERT INTO costume_inspiration_products (inspiration_id, product_id, display_order)
                        VALUES (:inspiration_id, :product_id, :display_order)
                        ON CONFLICT (inspiration_id, product_id) DO NOTHING
                    """),
                    {
                        "inspiration_id": inspiration_id,
                        "product_id": product_ids[product_name],
                        "display_order": position,
                    },
                )
        logger.info(f"Seeded {len(INSPIRATIONS)} inspirations")
