"""Historical transaction data: seeded synthetic generation, JSON loading and
identifier canonicalization at the boundary into the decision core.

The synthetic profiles give each acquirer a distinct segment signature:

- A approves ~85% everywhere, except a 4-hour outage (hours 48-52) where
  90% of attempts error or time out.
- B approves 92% of MXN credit, 71% of MXN debit and ~83% of the rest.
- C approves 89% up to 500 and 68% above.
"""

import json
import random
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Union

from pydantic import TypeAdapter

from .models import CardType, Country, Currency, Outcome, PaymentRequest, Transaction
from .registry import Registry

DEFAULT_SEED = 42
DEFAULT_COUNT = 1000
DEFAULT_START = datetime(2026, 2, 17, tzinfo=timezone.utc)
WINDOW = timedelta(days=7)

ACQUIRERS = ["A", "B", "C"]
CURRENCIES: List[Currency] = ["MXN", "BRL", "USD"]
CARD_TYPES: List[CardType] = ["credit", "debit"]
CURRENCY_COUNTRY: Dict[str, Country] = {"MXN": "MX", "BRL": "BR", "USD": "US"}
TAKE_RATES = {"A": 2.8, "B": 3.1, "C": 2.1}
BASE_LATENCY_MS = {"A": 180, "B": 220, "C": 150}

OUTAGE_HOURS = (48, 52)

_transactions = TypeAdapter(List[Transaction])

def _pick(roll: float, bands: List[tuple]) -> Outcome:
    # bands are (upper bound, outcome) in ascending order; the last one catches the rest
    for bound, outcome in bands[:-1]:
        if roll < bound:
            return outcome
    return bands[-1][1]

def determine_outcome(rng: random.Random, acquirer: str, amount: float, currency: str, card_type: str, hours: float) -> Outcome:
    roll = rng.random()
    if acquirer == "A":
        if OUTAGE_HOURS[0] <= hours < OUTAGE_HOURS[1]:
            return _pick(roll, [(0.10, "approved"), (0.55, "error"), (1.0, "timeout")])
        return _pick(roll, [(0.85, "approved"), (0.92, "declined"), (0.97, "error"), (1.0, "timeout")])
    if acquirer == "B":
        if currency == "MXN" and card_type == "credit":
            return _pick(roll, [(0.92, "approved"), (0.97, "declined"), (1.0, "error")])
        if currency == "MXN" and card_type == "debit":
            return _pick(roll, [(0.71, "approved"), (0.88, "declined"), (0.95, "error"), (1.0, "timeout")])
        return _pick(roll, [(0.83, "approved"), (0.93, "declined"), (0.97, "error"), (1.0, "timeout")])
    if acquirer == "C":
        if amount > 500:
            return _pick(roll, [(0.68, "approved"), (0.85, "declined"), (0.94, "error"), (1.0, "timeout")])
        return _pick(roll, [(0.89, "approved"), (0.95, "declined"), (0.98, "error"), (1.0, "timeout")])
    return "declined"

def processing_time_ms(rng: random.Random, acquirer: str, outcome: Outcome) -> int:
    ms = BASE_LATENCY_MS.get(acquirer, 200) + rng.random() * 300
    if outcome == "timeout":
        ms += 2000 + rng.random() * 3000
    elif outcome == "error":
        ms += 200 + rng.random() * 500
    return round(ms)

def generate_transactions(seed: int = DEFAULT_SEED, count: int = DEFAULT_COUNT, start: datetime = DEFAULT_START) -> List[Transaction]:
    rng = random.Random(seed)
    out: List[Transaction] = []
    for _ in range(count):
        offset = rng.random() * WINDOW.total_seconds()
        acquirer = rng.choice(ACQUIRERS)
        currency = rng.choice(CURRENCIES)
        card_type = rng.choice(CARD_TYPES)
        amount = round(10 + rng.random() * 1990, 2)
        outcome = determine_outcome(rng, acquirer, amount, currency, card_type, offset / 3600)
        out.append(Transaction(
            id=str(uuid.UUID(int=rng.getrandbits(128), version=4)),
            timestamp=start + timedelta(seconds=offset),
            acquirer=acquirer,
            amount=amount,
            currency=currency,
            cardType=card_type,
            country=CURRENCY_COUNTRY[currency],
            outcome=outcome,
            takeRate=TAKE_RATES[acquirer],
            processingTimeMs=processing_time_ms(rng, acquirer, outcome),
        ))
    out.sort(key=lambda tx: tx.timestamp)
    return out

def sample_requests() -> List[PaymentRequest]:
    """Edge-case requests around the amount-range boundaries, used by the demo."""
    rows = [
        (10, "MXN", "credit"), (10, "BRL", "debit"), (10, "USD", "credit"),
        (499, "MXN", "credit"), (499, "BRL", "debit"), (499, "USD", "credit"),
        (501, "MXN", "debit"), (501, "BRL", "credit"), (501, "USD", "debit"),
        (1500, "MXN", "credit"), (1500, "BRL", "debit"), (1500, "USD", "credit"),
        (2000, "MXN", "debit"), (2000, "BRL", "credit"), (2000, "USD", "debit"),
        (150, "MXN", "credit"), (250, "BRL", "debit"), (350, "USD", "credit"),
        (75.50, "MXN", "debit"), (420, "BRL", "credit"), (600, "USD", "debit"),
        (880, "MXN", "credit"), (199.99, "BRL", "debit"), (1200, "USD", "credit"),
        (55, "MXN", "debit"), (750, "BRL", "credit"), (333.33, "USD", "debit"),
        (500, "MXN", "credit"), (500, "BRL", "debit"), (1000, "USD", "credit"),
    ]
    return [
        PaymentRequest(amount=amount, currency=currency, cardType=card_type, country=CURRENCY_COUNTRY[currency])
        for amount, currency, card_type in rows
    ]

def load_transactions(path: Union[str, Path]) -> List[Transaction]:
    data = json.loads(Path(path).read_text())
    return _transactions.validate_python(data)

def dump_transactions(transactions: List[Transaction], path: Union[str, Path]) -> None:
    Path(path).write_bytes(_transactions.dump_json(transactions, indent=2))

def canonicalize(transactions: List[Transaction], registry: Registry) -> List[Transaction]:
    """Rewrite acquirer identifiers to the registry's canonical names."""
    out = []
    for tx in transactions:
        name = registry.canonical(tx.acquirer)
        out.append(tx if name == tx.acquirer else tx.model_copy(update={"acquirer": name}))
    return out
