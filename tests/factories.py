"""Payload builders and constants shared by tests"""

from typing import Any, Dict

SESSION_SECRET = "session-secret-abc"


def make_plaid_transaction(transaction_id: str, day: str, amount: float, **overrides: Any) -> Dict[str, Any]:
    """Plaid transactions/sync ``added`` entry"""
    txn = {
        "transaction_id": transaction_id,
        "account_id": "acc-1",
        "name": f"Merchant {transaction_id}",
        "amount": amount,
        "date": day,
        "pending": False,
        "payment_channel": "in store",
        "category": ["Food and Drink", "Restaurants"],
        "logo_url": None,
    }
    txn.update(overrides)
    return txn


def make_plaid_accounts_response(account_id: str = "acc-1", current: float = 110.0) -> Dict[str, Any]:
    return {
        "accounts": [
            {
                "account_id": account_id,
                "balances": {"available": 100.0, "current": current},
                "mask": "0000",
                "name": "Plaid Checking",
                "official_name": "Plaid Gold Standard 0% Interest Checking",
                "type": "depository",
                "subtype": "checking",
            }
        ],
        "item": {"item_id": "item-1", "institution_id": "ins_109508"},
    }
