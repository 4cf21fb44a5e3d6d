#!/usr/bin/env python3
"""
Database management script.
Creates and drops tables and seeds an admin account or sample data.
"""

import asyncio
import argparse
import logging
import os
import sys
from decimal import Decimal

from estate_api.config import settings
from estate_api.database import AsyncSessionLocal, create_tables, drop_tables, close_db_connection
from estate_api.models.user import UserRole
from estate_api.models.property import PropertyType, PropertyPurpose, PropertyStatus
from estate_api.repositories.user import UserRepository
from estate_api.repositories.property import PropertyRepository

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

SAMPLE_PASSWORD = "Password1"

SAMPLE_AGENTS = [
    {"name": "Ayesha Khan", "email": "ayesha.agent@example.com", "phone": "+92 300 1234567"},
    {"name": "Bilal Ahmed", "email": "bilal.agent@example.com", "phone": "+92 321 7654321"},
]

SAMPLE_BUYERS = [
    {"name": "Sara Malik", "email": "sara.buyer@example.com"},
    {"name": "Omar Farooq", "email": "omar.buyer@example.com"},
]

SAMPLE_LISTINGS = [
    (PropertyType.HOUSE, PropertyPurpose.SALE, "45000000", "DHA Phase 6, Lahore", 5, "4500",
     "Corner house with a lawn, servant quarter and double garage."),
    (PropertyType.APARTMENT, PropertyPurpose.RENT, "120000", "Clifton Block 5, Karachi", 3, "1800",
     "Sea-facing apartment with backup power and covered parking."),
    (PropertyType.LAND, PropertyPurpose.SALE, "18000000", "Bahria Town, Islamabad", None, "2250",
     "Residential land near the main boulevard, possession ready."),
    (PropertyType.COMMERCIAL, PropertyPurpose.RENT, "350000", "Gulberg III, Lahore", None, "3000",
     "Ground floor shop on a busy commercial road."),
    (PropertyType.HOUSE, PropertyPurpose.RENT, "250000", "F-7, Islamabad", 4, "3600",
     "Family house with a basement, close to schools and markets."),
]


async def seed_admin(email: str, password: str, name: str) -> None:
    """Create the admin account unless the email is already registered."""
    async with AsyncSessionLocal() as session:
        users = UserRepository(session)
        if await users.get_by_email(email, include_deleted=True):
            logger.info(f"User {email} already exists, skipping")
            return

        await users.create_user({
            "name": name,
            "email": email,
            "password": password,
            "role": UserRole.ADMIN,
        })
        logger.info(f"Admin user created: {email}")
        logger.warning("Please change the admin password in production!")


async def seed_sample_data() -> None:
    """Sample agents, buyers and listings for local development."""
    async with AsyncSessionLocal() as session:
        users = UserRepository(session)
        properties = PropertyRepository(session)

        agents = []
        for agent_data in SAMPLE_AGENTS:
            agent = await users.get_by_email(agent_data["email"], include_deleted=True)
            if agent is None:
                agent = await users.create_user({**agent_data, "password": SAMPLE_PASSWORD, "role": UserRole.AGENT})
            agents.append(agent)

        for buyer_data in SAMPLE_BUYERS:
            if await users.get_by_email(buyer_data["email"], include_deleted=True) is None:
                await users.create_user({**buyer_data, "password": SAMPLE_PASSWORD, "role": UserRole.BUYER})

        if await properties.count():
            logger.info("Listings already present, skipping sample listings")
            return

        for index, (ptype, purpose, price, location, bedrooms, area, description) in enumerate(SAMPLE_LISTINGS):
            await properties.create_property({
                "agent_id": agents[index % len(agents)].id,
                "type": ptype,
                "purpose": purpose,
                "price": Decimal(price),
                "location": location,
                "bedrooms": bedrooms,
                "area": Decimal(area),
                "description": description,
                "status": PropertyStatus.AVAILABLE,
            })

        logger.info(f"Seeded {len(SAMPLE_LISTINGS)} listings; sample accounts use password {SAMPLE_PASSWORD}")


async def run(args: argparse.Namespace) -> None:
    try:
        if args.command == "create-tables":
            await create_tables()
        elif args.command == "drop-tables":
            await drop_tables()
        elif args.command == "seed-admin":
            await create_tables()
            await seed_admin(args.email, args.password, args.name)
        elif args.command == "seed":
            await create_tables()
            await seed_sample_data()
    finally:
        await close_db_connection()


def main():
    """Main CLI interface for database management."""
    parser = argparse.ArgumentParser(description=f"{settings.app_name} database management")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("create-tables", help="Create all tables")

    drop_parser = subparsers.add_parser("drop-tables", help="Drop all tables (not allowed in production)")
    drop_parser.add_argument("--confirm", action="store_true", help="Confirm dropping every table")

    admin_parser = subparsers.add_parser("seed-admin", help="Create an admin account")
    admin_parser.add_argument("--email", default=os.environ.get("ADMIN_EMAIL", "admin@example.com"))
    admin_parser.add_argument("--password", default=os.environ.get("ADMIN_PASSWORD"))
    admin_parser.add_argument("--name", default="Administrator")

    subparsers.add_parser("seed", help="Seed sample agents, buyers and listings")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    if args.command == "drop-tables" and not args.confirm:
        print("Dropping tables requires the --confirm flag")
        sys.exit(1)

    if args.command == "seed-admin" and not args.password:
        print("seed-admin needs --password or the ADMIN_PASSWORD environment variable")
        sys.exit(1)

    try:
        asyncio.run(run(args))
    except Exception as e:
        logger.error(f"Command failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
