"""Seed the database with an admin account and a small catalog.

Registration always creates customers, so this script is how the first
admin comes into existence. Credentials come from ADMIN_EMAIL /
ADMIN_PASSWORD (and optionally ADMIN_NAME).
"""
import logging
import os

from dotenv import load_dotenv

from database import SessionLocal, init_db
from models.category import Category
from models.product import Product, ProductCategory
from models.users import Role, User
from utils.hashing import get_password_hash

logger = logging.getLogger("populate_db")

# Configuration
SAMPLE_CATEGORIES = [
    ("Electronics", "Phones, laptops and gadgets"),
    ("Accessories", "Cables, cases and chargers"),
    ("Clothing", "Apparel for every season"),
    ("Books", "Printed and bound"),
]

SAMPLE_PRODUCTS = [
    ("Wireless Headphones", ProductCategory.ELECTRONICS, 199.99, 25),
    ("USB-C Cable 2m", ProductCategory.ACCESSORIES, 12.50, 200),
    ("Cotton T-Shirt", ProductCategory.CLOTHING, 19.00, 80),
    ("Python Cookbook", ProductCategory.BOOKS, 45.90, 15),
]
# End Configuration


def ensure_admin(session, email: str, password: str, name: str = "Administrator") -> User:
    email = email.strip().lower()
    admin = session.query(User).filter(User.email == email).first()
    if admin:
        admin.role = Role.ADMIN
        admin.is_active = True
        logger.info("Promoted existing user %s to admin", email)
    else:
        admin = User(name=name, email=email, password_hash=get_password_hash(password), role=Role.ADMIN, is_active=True)
        session.add(admin)
        logger.info("Created admin %s", email)
    session.flush()
    return admin


def load_catalog(session) -> None:
    categories = {}
    for name, description in SAMPLE_CATEGORIES:
        category = session.query(Category).filter(Category.name == name).first()
        if not category:
            category = Category(name=name, description=description)
            session.add(category)
            session.flush()
        categories[name] = category

    for name, category, price, stock in SAMPLE_PRODUCTS:
        if session.query(Product).filter(Product.name == name).first():
            continue
        session.add(Product(
            name=name,
            category=category.value,
            category_id=categories[category.value].id,
            price=price,
            stock_quantity=stock,
            description=f"Category: {category.value}.",
            images=[],
        ))
    logger.info("Catalog loaded: %d categories, %d products", len(SAMPLE_CATEGORIES), len(SAMPLE_PRODUCTS))


def populate_database():
    """Main execution function to populate database."""
    load_dotenv()
    init_db()

    email = os.getenv("ADMIN_EMAIL")
    password = os.getenv("ADMIN_PASSWORD")

    session = SessionLocal()
    try:
        if email and password:
            ensure_admin(session, email, password, os.getenv("ADMIN_NAME", "Administrator"))
        else:
            logger.warning("ADMIN_EMAIL/ADMIN_PASSWORD not set, skipping admin account")
        load_catalog(session)
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    populate_database()
