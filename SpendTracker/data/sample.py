"""Sample transaction generator, used to populate an empty ledger for demos and manual testing."""
import datetime
import random
from typing import Optional

from .model import CategoryCatalog, DEFAULT_CATALOG, Transaction, new_id

SAMPLE_DESCRIPTIONS: dict[str, list[str]] = {
    'Food': ['Groceries', 'Coffee', 'Lunch with colleagues', 'Pizza night', 'Bakery'],
    'Transport': ['Bus ticket', 'Taxi', 'Fuel', 'Train pass', 'Parking'],
    'Shopping': ['New shoes', 'Books', 'Headphones', 'Kitchen supplies'],
    'Entertainment': ['Cinema', 'Concert tickets', 'Streaming subscription', 'Board game'],
    'Bills': ['Electricity bill', 'Internet', 'Phone plan', 'Water bill'],
    'Health': ['Pharmacy', 'Gym membership', 'Dentist'],
    'Education': ['Online course', 'Textbooks', 'Workshop fee'],
    'Other': ['Gift', 'Donation', 'Miscellaneous'],
}

AMOUNT_RANGES: dict[str, tuple[float, float]] = {
    'Food': (3.0, 80.0),
    'Transport': (2.0, 60.0),
    'Shopping': (10.0, 200.0),
    'Entertainment': (5.0, 120.0),
    'Bills': (20.0, 250.0),
    'Health': (5.0, 150.0),
    'Education': (10.0, 300.0),
    'Other': (1.0, 100.0),
}


def generate_sample_transactions(
        now: datetime.datetime,
        count: int = 50,
        days: int = 90,
        seed: Optional[int] = None,
        catalog: Optional[CategoryCatalog] = None,
) -> list[Transaction]:
    """Generate ``count`` random transactions spread over the ``days`` days before ``now``.

    Args:
        now: The current instant; no transaction is dated after it.
        count: Number of transactions to generate.
        days: How many days back the transactions may be dated.
        seed: Seed for reproducible output.
        catalog: Categories to draw from.

    Returns:
        list[Transaction]: The generated records, oldest first.
    """
    rng = random.Random(seed)
    catalog = catalog or DEFAULT_CATALOG
    names = list(catalog)

    transactions = []
    for _ in range(max(count, 0)):
        category = rng.choice(names)
        low, high = AMOUNT_RANGES.get(category, (1.0, 100.0))
        descriptions = SAMPLE_DESCRIPTIONS.get(category) or [category]
        offset = datetime.timedelta(
            days=rng.randint(0, max(days - 1, 0)),
            hours=rng.randint(0, 23),
            minutes=rng.randint(0, 59),
        )
        occurred_at = min(now - offset, now)
        transactions.append(
            Transaction(
                id=new_id(),
                amount=round(rng.uniform(low, high), 2),
                category=category,
                occurred_at=occurred_at.replace(microsecond=0),
                description=rng.choice(descriptions),
            )
        )
    return sorted(transactions, key=lambda t: t.occurred_at)
