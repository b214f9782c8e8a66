#!/usr/bin/env python3
"""
Seed script to create a demo dining room and a few known customers
"""

import asyncio
import uuid

DEMO_TABLES = [
    # number, capacity, seating area, features, accessible
    (1, 2, "main", ["window"], False),
    (2, 2, "main", [], True),
    (3, 4, "main", ["booth"], False),
    (4, 4, "main", [], True),
    (5, 6, "main", ["booth"], False),
    (6, 4, "patio", ["outdoor"], False),
    (7, 6, "patio", ["outdoor"], True),
    (8, 8, "terrace", ["view"], False),
    (9, 2, "bar", [], False),
    (10, 10, "private room", ["private"], True),
]

DEMO_CUSTOMERS = [
    ("Lucia Fernandez", "+5491155550101", "lucia@example.com"),
    ("Martin Gomez", "+5491155550102", None),
    ("Sofia Ruiz", "+5491155550103", "sofia@example.com"),
]


async def seed_demo_data():
    """Seed demo data for development"""
    from app.database import SessionLocal, engine, Base
    from app.models.customer import Customer
    from app.models.table import DiningTable
    from sqlalchemy import select, func

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as db:
        result = await db.execute(select(func.count(DiningTable.id)))
        if result.scalar():
            print("Demo data already exists. Skipping...")
            return

        print("Creating dining tables...")
        for number, capacity, area, features, accessible in DEMO_TABLES:
            db.add(DiningTable(
                id=uuid.uuid4(),
                number=number,
                capacity=capacity,
                min_capacity=1,
                max_capacity=capacity,
                seating_area=area,
                features=features,
                is_accessible=accessible,
            ))

        print("Creating customers...")
        for name, phone, email in DEMO_CUSTOMERS:
            db.add(Customer(id=uuid.uuid4(), name=name, phone=phone, email=email))

        await db.commit()

    print(f"""
Demo data created successfully!

Tables: {len(DEMO_TABLES)} ({sum(t[1] for t in DEMO_TABLES)} seats)
Customers: {len(DEMO_CUSTOMERS)}
""")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
