"""Built-in training catalog for the expense classifier.

Maps each spending category to short sample descriptions of the kind users
type when recording an expense. The phrases are intentionally broad and cover
common merchants so the classifier has context out of the box; supply your
own labelled CSV (``description,category`` columns) to improve accuracy.
"""

from __future__ import annotations

import csv
from pathlib import Path

from .errors import MalformedInputError
from .models import Category, TrainingExample

TRAINING_CATALOG: dict[Category, list[str]] = {
    Category.FOOD_DINING: [
        "coffee at starbucks",
        "starbucks latte",
        "lunch at mcdonalds",
        "dinner at italian restaurant",
        "pizza delivery dominos",
        "grocery shopping at whole foods",
        "groceries at trader joes",
        "chipotle burrito bowl",
        "breakfast at cafe",
        "subway sandwich",
        "food delivery doordash",
        "ubereats dinner order",
        "bakery bread and pastries",
        "sushi restaurant dinner",
    ],
    Category.TRANSPORTATION: [
        "uber ride to airport",
        "lyft ride home",
        "gas station fill up",
        "shell gasoline",
        "chevron fuel",
        "monthly metro pass",
        "bus ticket",
        "train ticket amtrak",
        "parking garage fee",
        "toll road charge",
        "car wash",
        "oil change jiffy lube",
        "taxi fare downtown",
    ],
    Category.SHOPPING: [
        "amazon purchase",
        "amazon order household items",
        "walmart shopping",
        "target clothes",
        "best buy electronics",
        "new shoes at nike store",
        "clothing at h&m",
        "ebay order",
        "ikea furniture",
        "apple store headphones",
        "costco bulk shopping",
        "gift for birthday",
    ],
    Category.ENTERTAINMENT: [
        "netflix subscription",
        "spotify premium",
        "movie tickets at amc",
        "concert tickets",
        "hulu monthly subscription",
        "disney plus subscription",
        "video game on steam",
        "playstation store purchase",
        "bowling night",
        "theater show tickets",
        "youtube premium",
    ],
    Category.HEALTHCARE: [
        "doctor visit copay",
        "cvs pharmacy prescription",
        "walgreens pharmacy",
        "dentist appointment",
        "eye exam optometrist",
        "hospital bill",
        "physical therapy session",
        "urgent care visit",
        "prescription medication refill",
        "lab test fees",
    ],
    Category.UTILITIES: [
        "electricity bill",
        "water bill",
        "gas utility bill",
        "internet bill comcast",
        "verizon phone bill",
        "at&t wireless bill",
        "trash collection service",
        "power company payment",
        "xfinity internet",
        "mobile phone plan",
    ],
    Category.HOUSING: [
        "monthly rent payment",
        "apartment rent",
        "mortgage payment",
        "hoa dues",
        "home repair plumber",
        "home depot repair supplies",
        "electrician service call",
        "property tax payment",
        "lawn care service",
        "furniture repair",
    ],
    Category.EDUCATION: [
        "college tuition payment",
        "textbooks for class",
        "online course udemy",
        "coursera subscription",
        "school supplies",
        "student loan payment",
        "tutoring session",
        "exam registration fee",
        "language class",
        "workshop registration",
    ],
    Category.TRAVEL: [
        "flight to new york",
        "delta airlines ticket",
        "united airlines flight",
        "hotel booking marriott",
        "airbnb reservation",
        "expedia travel booking",
        "rental car hertz",
        "vacation resort stay",
        "travel insurance for trip",
        "booking com hotel",
        "cruise deposit",
    ],
    Category.PERSONAL_CARE: [
        "haircut at barber",
        "hair salon appointment",
        "gym membership",
        "planet fitness monthly",
        "spa massage",
        "manicure and pedicure",
        "skincare products sephora",
        "cosmetics at ulta",
        "yoga class",
        "toiletries shampoo and soap",
    ],
    Category.INSURANCE: [
        "car insurance premium",
        "geico auto insurance",
        "health insurance premium",
        "life insurance payment",
        "renters insurance",
        "home insurance policy",
        "state farm insurance",
        "dental insurance",
        "progressive insurance bill",
        "pet insurance",
    ],
    Category.INVESTMENTS: [
        "stock purchase robinhood",
        "401k contribution",
        "ira deposit",
        "vanguard index fund",
        "fidelity brokerage transfer",
        "crypto purchase coinbase",
        "bitcoin investment",
        "etf purchase",
        "savings bond",
        "mutual fund investment",
    ],
    Category.OTHER: [
        "donation to charity",
        "atm cash withdrawal",
        "bank fee",
        "miscellaneous expense",
        "tax payment",
        "wire transfer fee",
        "postage stamps",
        "gift card",
    ],
}

#: Descriptions used to sanity-check a freshly trained model.
SAMPLE_DESCRIPTIONS = [
    "Starbucks coffee",
    "Uber ride to airport",
    "Amazon purchase",
    "Netflix subscription",
    "Grocery shopping at Walmart",
]


def build_training_set(catalog: dict[Category, list[str]] | None = None) -> list[TrainingExample]:
    """Flatten a label-to-phrases catalog into training examples.

    Categories are emitted in declaration order, phrases in catalog order.
    """
    catalog = TRAINING_CATALOG if catalog is None else catalog
    return [
        TrainingExample(description=phrase, category=category)
        for category, phrases in catalog.items()
        for phrase in phrases
    ]


def load_training_csv(path: str | Path) -> list[TrainingExample]:
    """Read labelled examples from a CSV with ``description`` and ``category`` columns.

    Column names are matched case-insensitively. Rows with a blank
    description are skipped.

    Raises:
        FileNotFoundError: If the file does not exist.
        MalformedInputError: If a required column is missing or a row names
            an unknown category.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    examples: list[TrainingExample] = []
    with open(path, "r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        columns = {name.strip().lower(): name for name in (reader.fieldnames or [])}
        if not {"description", "category"}.issubset(columns):
            raise MalformedInputError(
                f"{path.name} must contain 'description' and 'category' columns"
            )
        for line_no, row in enumerate(reader, start=2):
            description = (row.get(columns["description"]) or "").strip()
            if not description:
                continue
            try:
                examples.append(TrainingExample.from_pair(description, row.get(columns["category"]) or ""))
            except MalformedInputError as exc:
                raise MalformedInputError(f"{path.name}, line {line_no}: {exc}") from exc

    return examples
