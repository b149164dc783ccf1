"""Transaction reshaping - turns provider payloads into one display shape"""

import math
from collections import Counter
from typing import Any, Dict, Iterable, List
from horizon.domain.models import Transaction, TransferRecord, TransactionPage
from horizon.utils.date_utils import parse_provider_date


def plaid_category(txn: Dict[str, Any]) -> str:
    """First legacy category, falling back to the personal-finance primary"""
    legacy = txn.get("category")
    if isinstance(legacy, list) and legacy:
        return legacy[0]

    pfc = txn.get("personal_finance_category") or {}
    return pfc.get("primary", "") or ""


def from_plaid(txn: Dict[str, Any]) -> Transaction:
    """
    Map a Plaid transaction to the display shape.

    Plaid amounts are positive when money leaves the account, so positive
    amounts are debits and everything else is a credit.
    """
    amount = txn["amount"]
    return Transaction(
        id=txn["transaction_id"],
        name=txn["name"],
        amount=amount,
        date=parse_provider_date(txn["date"]),
        category=plaid_category(txn),
        type="debit" if amount > 0 else "credit",
        payment_channel=txn.get("payment_channel") or "",
        pending=bool(txn.get("pending", False)),
        account_id=txn.get("account_id"),
        image=txn.get("logo_url"),
    )


def from_transfer(record: TransferRecord, bank_id: str) -> Transaction:
    """Map a stored transfer to the display shape, seen from ``bank_id``"""
    return Transaction(
        id=record.id,
        name=record.name,
        amount=record.amount,
        date=record.created_at,
        category=record.category,
        type="debit" if record.sender_bank_id == bank_id else "credit",
        payment_channel=record.channel,
    )


class SyncAccumulator:
    """
    Folds transactions/sync pages into a single result set.

    Added and modified transactions replace any earlier copy with the same id;
    removed ids are dropped.
    """

    def __init__(self) -> None:
        self._by_id: Dict[str, Transaction] = {}

    def apply(self, page: Dict[str, Any]) -> None:
        for txn in page.get("added", []) + page.get("modified", []):
            mapped = from_plaid(txn)
            self._by_id[mapped.id] = mapped

        for removed in page.get("removed", []):
            self._by_id.pop(removed.get("transaction_id"), None)

    def reset(self) -> None:
        self._by_id.clear()

    def results(self) -> List[Transaction]:
        return list(self._by_id.values())


def merge_transactions(*sources: Iterable[Transaction]) -> List[Transaction]:
    """Merge transaction lists, most recent first"""
    merged = [txn for source in sources for txn in source]
    return sorted(merged, key=lambda t: t.date, reverse=True)


def paginate(transactions: List[Transaction], page: int, per_page: int) -> TransactionPage:
    """
    Slice a transaction list for display.

    Pages are 1-based. A page past the end is clamped to the last page.
    """
    total_items = len(transactions)
    total_pages = max(math.ceil(total_items / per_page), 1)
    page = min(max(page, 1), total_pages)

    start = (page - 1) * per_page
    return TransactionPage(
        items=transactions[start:start + per_page],
        page=page,
        total_pages=total_pages,
        total_items=total_items,
    )


def count_categories(transactions: List[Transaction]) -> List[Dict[str, Any]]:
    """Category counts for the spending sidebar, most frequent first"""
    counts = Counter(t.category or "Uncategorized" for t in transactions)
    total = sum(counts.values())

    return [
        {"name": name, "count": count, "total_count": total}
        for name, count in sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    ]
