#!/usr/bin/env python3
"""Seed the shop database.

Creates an admin account and a small demo catalog so the storefront and
back office have something to show.

Usage:
    python scripts/seed_shop.py --admin-email admin@example.com --admin-password 'Admin!234'
    python scripts/seed_shop.py --no-products
    python scripts/seed_shop.py --clear
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import delete

from storefront.domain.rules import ensure_strong_password
from storefront.domain.state_machines import UserRole
from storefront.infrastructure.database import async_session_factory, create_schema
from storefront.infrastructure.models import Product, User
from storefront.infrastructure.repositories import ProductRepository, UserRepository
from storefront.infrastructure.security import hash_password

PLACEHOLDER_IMAGE = "https://res.cloudinary.com/demo/image/upload/sample.jpg"

DEMO_PRODUCTS = [
    {
        "name": "iPhone 15",
        "category": "New Phones",
        "price_cents": 79900,
        "stock": 8,
        "variations": [
            {"name": "Storage", "options": [{"value": "128GB", "price": 79900}, {"value": "256GB", "price": 89900}]},
            {"name": "Color", "options": [{"value": "Black"}, {"value": "Blue"}, {"value": "Pink"}]},
        ],
    },
    {
        "name": "Samsung Galaxy S23 (Refurbished)",
        "category": "Refurbished",
        "price_cents": 42900,
        "stock": 4,
        "variations": [{"name": "Grade", "options": [{"value": "A", "price": 44900}, {"value": "B", "price": 39900}]}],
    },
    {
        "name": "Google Pixel 8",
        "category": "New Phones",
        "price_cents": 59900,
        "stock": 6,
        "variations": [],
    },
    {
        "name": "USB-C Fast Charger 30W",
        "category": "Accessories",
        "price_cents": 1999,
        "stock": 50,
        "variations": [],
    },
    {
        "name": "Tempered Glass Screen Protector",
        "category": "Accessories",
        "price_cents": 899,
        "stock": 120,
        "variations": [{"name": "Model", "options": [{"value": "iPhone 15"}, {"value": "Pixel 8"}]}],
    },
]


async def seed_admin(email: str, password: str, name: str) -> bool:
    """Create the admin account unless the email is already taken.

    Returns:
        True if an account was created.
    """
    async with async_session_factory() as session:
        users = UserRepository(session)
        if await users.get_by_email(email) is not None:
            return False
        await users.save(
            User(
                name=name,
                email=email,
                password_hash=hash_password(password),
                role=UserRole.ADMIN.value,
                verified=True,
            )
        )
        await session.commit()
        return True


async def seed_products(clear: bool = False) -> dict:
    """Insert the demo catalog.

    Args:
        clear: Whether to delete existing products first.

    Returns:
        Seeding result.
    """
    async with async_session_factory() as session:
        deleted = 0
        if clear:
            result = await session.execute(delete(Product))
            deleted = result.rowcount or 0

        products = ProductRepository(session)
        for data in DEMO_PRODUCTS:
            await products.save(
                Product(
                    description=f"{data['name']} from our shop floor.",
                    image_url=PLACEHOLDER_IMAGE,
                    image_urls=[PLACEHOLDER_IMAGE],
                    **data,
                )
            )
        await session.commit()
        return {"deleted": deleted, "products_created": len(DEMO_PRODUCTS)}


async def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Seed an admin account and demo catalog",
    )
    parser.add_argument(
        "--admin-email",
        default="admin@storefront.local",
        help="Admin login email (default: admin@storefront.local)",
    )
    parser.add_argument(
        "--admin-password",
        default="Admin!2345",
        help="Admin password; must be strong",
    )
    parser.add_argument(
        "--admin-name",
        default="Shop Admin",
        help="Admin display name",
    )
    parser.add_argument(
        "--no-products",
        action="store_true",
        help="Only create the admin account",
    )
    parser.add_argument(
        "--clear",
        action="store_true",
        help="Delete existing products before seeding",
    )

    args = parser.parse_args()
    ensure_strong_password(args.admin_password)

    print("=" * 60)
    print("Storefront Seeder")
    print("=" * 60)

    print("Creating database tables...")
    await create_schema()
    print("Tables ready.")
    print()

    created = await seed_admin(args.admin_email, args.admin_password, args.admin_name)
    if created:
        print(f"  ✓ Admin created: {args.admin_email}")
    else:
        print(f"  - Admin exists: {args.admin_email}")

    if not args.no_products:
        result = await seed_products(clear=args.clear)
        print(f"  ✓ Deleted: {result['deleted']} existing products")
        print(f"  ✓ Created: {result['products_created']} products")

    print()
    print("=" * 60)
    print("Seeding complete!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
