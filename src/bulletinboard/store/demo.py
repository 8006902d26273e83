"""
Demo data for trying the board out by hand.

    demo@example.com  / demo123   "Demo User"    owns Vintage Bicycle, Gaming Laptop
    alice@example.com / alice123  "Alice Smith"  owns iPhone 14 Pro
"""

import logging

from .board import BoardStore


logger = logging.getLogger(__name__)


DEMO_USERS = [
    ("Demo User", "demo@example.com", "demo123"),
    ("Alice Smith", "alice@example.com", "alice123"),
]

# (owner email, title, description, price)
DEMO_ADS = [
    ("demo@example.com", "Vintage Bicycle",
     "Reliable city bike. Recently serviced.", "150"),
    ("demo@example.com", "Gaming Laptop",
     '15" display, RTX graphics, 16GB RAM.', "950"),
    ("alice@example.com", "iPhone 14 Pro",
     "Mint condition, 256GB, with original box and accessories.", "750"),
]


def seed_demo_data(store: BoardStore) -> None:
    """Register the demo users and create their ads."""
    owners = {}
    for name, email, password in DEMO_USERS:
        owners[email] = store.register_user(name, email, password).id

    for email, title, description, price in DEMO_ADS:
        store.create_ad(owners[email], title, description, price)

    logger.info(f"Seeded demo data: {len(DEMO_USERS)} users, {len(DEMO_ADS)} ads")
