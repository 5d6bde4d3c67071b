"""
Demo catalog loaded by POST /api/v1/seed when the store is empty.
"""
import structlog

from database import create_document
from schemas import slugify

logger = structlog.get_logger(__name__)

DEMO_CATEGORIES = [
    {"name": "Breakfast", "description": "Granolas, porridges and mueslis", "image": "/cat-breakfast.jpg"},
    {"name": "Superfoods", "description": "Nutrient dense powders and berries", "image": "/cat-superfoods.jpg"},
    {"name": "Snacks", "description": "Healthy bites for the day", "image": "/cat-snacks.jpg"},
    {"name": "Drinks", "description": "Plant milks and fermented drinks", "image": "/cat-drinks.jpg"},
]

DEMO_PRODUCTS = [
    {"name": "Protein Granola", "category": "Breakfast", "price": 8.99, "discountPrice": 7.49, "stock": 120,
     "images": ["/prod-granola.jpg"], "isOrganic": True, "featured": True,
     "description": "Crunchy oat granola with pea protein and almonds."},
    {"name": "Red Berry Porridge", "category": "Breakfast", "price": 5.49, "stock": 80,
     "images": ["/prod-porridge.jpg"], "isVegan": True,
     "description": "Whole oat porridge with freeze dried raspberries."},
    {"name": "Spirulina Powder", "category": "Superfoods", "price": 14.9, "stock": 45,
     "images": ["/prod-spirulina.jpg"], "isOrganic": True, "isVegan": True, "isGlutenFree": True, "featured": True,
     "description": "Pure spirulina to blend into smoothies."},
    {"name": "Goji Berries", "category": "Superfoods", "price": 11.5, "discountPrice": 9.9, "stock": 60,
     "images": ["/prod-goji.jpg"], "isOrganic": True, "isVegan": True, "isGlutenFree": True,
     "description": "Sun dried goji berries."},
    {"name": "Organic Nut Mix", "category": "Snacks", "price": 6.99, "stock": 150,
     "images": ["/prod-nuts.jpg"], "isOrganic": True, "isVegan": True, "isGlutenFree": True,
     "description": "Cashews, almonds, hazelnuts and walnuts."},
    {"name": "Date Energy Bars", "category": "Snacks", "price": 4.5, "stock": 200,
     "images": ["/prod-bars.jpg"], "isVegan": True, "featured": True,
     "description": "Pack of four date and cocoa bars."},
    {"name": "Ginger Lemon Kombucha", "category": "Drinks", "price": 3.9, "stock": 90,
     "images": ["/prod-kombucha.jpg"], "isOrganic": True, "isVegan": True, "isGlutenFree": True,
     "description": "Lightly sparkling fermented tea."},
    {"name": "Organic Almond Milk", "category": "Drinks", "price": 2.99, "stock": 110,
     "images": ["/prod-almond-milk.jpg"], "isOrganic": True, "isVegan": True, "isGlutenFree": True,
     "description": "Unsweetened almond drink."},
]


def seed_catalog(database) -> dict:
    created = {"categories": 0, "products": 0}
    if database["category"].count_documents({}) == 0:
        for cat in DEMO_CATEGORIES:
            create_document(database, "category", {**cat, "slug": slugify(cat["name"]), "level": 1, "isActive": True})
            created["categories"] += 1
    if database["product"].count_documents({}) == 0:
        by_name = {c["name"]: c["_id"] for c in database["category"].find({}, {"name": 1})}
        for prod in DEMO_PRODUCTS:
            category_id = by_name.get(prod["category"])
            if category_id is None:
                continue
            doc = {
                **prod,
                "slug": slugify(prod["name"]),
                "category": category_id,
                "sold": 0,
                "rating": 0,
                "numReviews": 0,
            }
            create_document(database, "product", doc)
            created["products"] += 1
    logger.info("catalog_seeded", **created)
    return created
