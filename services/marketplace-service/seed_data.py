import logging
from datetime import timedelta

from sqlalchemy.orm import Session

from auth import issue_token
from catalog_repository import CatalogRepository
from models import User
from shop_repository import ShopRepository

logger = logging.getLogger(__name__)

DEMO_USERS = [
    ("Asha Admin", "admin@agro.local", "admin"),
    ("Devendra Dealer", "dealer@agro.local", "dealer"),
    ("Farida Farmer", "farmer@agro.local", "farmer"),
]

# (name, category, description, price per unit, quantity)
SAMPLE_PRODUCTS = [
    ("Urea 46% N", "fertilizer", "Granular urea, 45 kg bag", 266.5, 120),
    ("DAP 18-46-0", "fertilizer", "Di-ammonium phosphate, 50 kg bag", 1350.0, 60),
    ("Hybrid Maize Seed", "seeds", "High-yield hybrid maize, 4 kg pack", 1450.0, 40),
    ("Paddy Seed IR-64", "seeds", "Certified paddy seed, 10 kg", 620.0, 75),
    ("Neem Oil 1500 ppm", "pesticide", "Organic neem-based pest repellent, 1 L", 420.0, 30),
    ("Knapsack Sprayer 16 L", "equipment", "Manual knapsack sprayer", 1890.0, 12),
]


def seed_demo_data(db: Session, jwt_secret: str, token_expiry_days: int = 7) -> None:
    """Seed demo users, one verified shop and its products. Idempotent."""
    logger.info("Seeding demo data...")

    users = {}
    for name, email, role in DEMO_USERS:
        user = db.query(User).filter(User.email == email).first()
        if user:
            logger.info(f"User {email} already exists, skipping")
        else:
            user = User(name=name, email=email, role=role)
            db.add(user)
            db.flush()
        users[role] = user

    dealer = users["dealer"]
    shops = ShopRepository(db)
    if shops.list_for_owner(dealer.id):
        logger.info("Demo shop already exists, skipping products")
    else:
        shop = shops.create_shop(dealer.id, "Kisan Seva Kendra", "Nashik, Maharashtra", dealer.name)
        shops.update_status(shop, "verified")

        catalog = CatalogRepository(db)
        for name, category, description, price, quantity in SAMPLE_PRODUCTS:
            catalog.create_product(
                dealer.id,
                shop.id,
                {
                    "name": name,
                    "category": category,
                    "description": description,
                    "price": price,
                    "quantity": quantity,
                    "is_published": True,
                },
            )

    db.commit()

    for role, user in users.items():
        token = issue_token(user.id, jwt_secret, expires_in=timedelta(days=token_expiry_days))
        logger.info(f"Demo {role} {user.email} token: {token}")
    logger.info(f"Seeded {len(DEMO_USERS)} users and {len(SAMPLE_PRODUCTS)} products")
