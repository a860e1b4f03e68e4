"""Demo catalogue — loaded into an empty store when SEED_DEMO_CATALOGUE is on."""

from decimal import Decimal

# (product_id, name, base_price, stock_available)
DEMO_PRODUCTS: list[tuple[str, str, Decimal, int]] = [
    ("demo-1", "Amnesia CBD", Decimal("8.50"), 150),
    ("demo-2", "Huile CBD 10%", Decimal("35.00"), 50),
    ("demo-3", "Résine Marocaine", Decimal("12.00"), 30),
    ("demo-4", "Infusion Relaxante", Decimal("6.00"), 200),
    ("demo-5", "OG Kush CBD", Decimal("9.00"), 80),
    ("demo-6", "Huile CBD 20%", Decimal("55.00"), 25),
    ("demo-7", "Critical Mass", Decimal("7.50"), 5),
    ("demo-8", "Gelato CBD", Decimal("10.00"), 100),
    ("demo-9", "Diesel Strawberry", Decimal("11.00"), 60),
]
