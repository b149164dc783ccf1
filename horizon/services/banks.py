"""Bank actions - live balances and merged transaction history"""

import asyncio
import logging
from typing import Any, Dict, List
from horizon.config import settings
from horizon.domain.exceptions import AggregatorError
from horizon.domain.models import Account, AccountDetail, AccountsSummary, Bank, Institution, Transaction
from horizon.domain.transactions import SyncAccumulator, from_transfer, merge_transactions
from horizon.infrastructure.clients.appwrite import AppwriteClient
from horizon.infrastructure.clients.plaid import MUTATION_DURING_PAGINATION, PlaidClient, first_account
from horizon.infrastructure.database.repositories import BankRepository
from horizon.infrastructure.observability.metrics import transactions_synced_histogram
from horizon.services.transactions import TransactionService

logger = logging.getLogger(__name__)

MAX_SYNC_RESTARTS = 3


def account_from_plaid(account_data: Dict[str, Any], institution: Institution, bank: Bank) -> Account:
    balances = account_data.get("balances", {})
    return Account(
        id=account_data["account_id"],
        available_balance=balances.get("available"),
        current_balance=balances.get("current") or 0.0,
        institution_id=institution.institution_id,
        name=account_data.get("name", ""),
        official_name=account_data.get("official_name"),
        mask=account_data.get("mask") or "",
        type=account_data.get("type") or "",
        subtype=account_data.get("subtype") or "",
        appwrite_item_id=bank.id,
        shareable_id=bank.shareable_id,
    )


class BankService:
    """Reads account snapshots and transactions for linked banks"""

    def __init__(self, appwrite: AppwriteClient, plaid: PlaidClient):
        self.plaid = plaid
        self.banks = BankRepository(appwrite)
        self.transactions = TransactionService(appwrite)

    async def get_accounts(self, user_id: str) -> AccountsSummary:
        """Snapshot every bank the user linked, with totals"""
        banks = await self.banks.list_by_user(user_id)
        accounts = await asyncio.gather(*(self._account_for_bank(bank) for bank in banks))

        return AccountsSummary(
            data=list(accounts),
            total_banks=len(accounts),
            total_current_balance=round(sum(a.current_balance for a in accounts), 2),
        )

    async def _account_for_bank(self, bank: Bank) -> Account:
        response = await self.plaid.accounts_get(bank.access_token)
        institution = await self.get_institution(response["item"]["institution_id"])
        return account_from_plaid(first_account(response), institution, bank)

    async def get_account(self, appwrite_item_id: str) -> AccountDetail:
        """
        One bank's snapshot plus its full history.

        Plaid transactions and stored transfers are merged, most recent first.
        """
        bank = await self.banks.get(appwrite_item_id)
        response = await self.plaid.accounts_get(bank.access_token)

        institution, transfers, plaid_transactions = await asyncio.gather(
            self.get_institution(response["item"]["institution_id"]),
            self.transactions.get_transactions_by_bank_id(bank.id),
            self.get_transactions(bank.access_token),
        )

        transfer_transactions = [from_transfer(record, bank.id) for record in transfers]

        return AccountDetail(
            data=account_from_plaid(first_account(response), institution, bank),
            transactions=merge_transactions(plaid_transactions, transfer_transactions),
        )

    async def get_institution(self, institution_id: str) -> Institution:
        data = await self.plaid.institutions_get_by_id(institution_id)
        return Institution(
            institution_id=data["institution_id"],
            name=data.get("name", ""),
            url=data.get("url"),
            logo=data.get("logo"),
            primary_color=data.get("primary_color"),
        )

    async def get_transactions(self, access_token: str) -> List[Transaction]:
        """
        Full history via cursor-based sync, starting from an empty cursor.

        A mutation during pagination restarts the sync from the beginning.
        Any other aggregator failure yields an empty history so balances can
        still be shown.
        """
        accumulator = SyncAccumulator()
        cursor = ""
        restarts = 0

        try:
            while True:
                try:
                    page = await self.plaid.transactions_sync(
                        access_token,
                        cursor=cursor,
                        count=settings.transactions_sync_page_size,
                    )
                except AggregatorError as e:
                    if e.error_code == MUTATION_DURING_PAGINATION and restarts < MAX_SYNC_RESTARTS:
                        restarts += 1
                        logger.info(f"Transactions changed during sync, restarting ({restarts}/{MAX_SYNC_RESTARTS})")
                        accumulator.reset()
                        cursor = ""
                        continue
                    raise

                accumulator.apply(page)

                if not page.get("has_more"):
                    break

                next_cursor = page.get("next_cursor") or ""
                if not next_cursor or next_cursor == cursor:
                    logger.warning("transactions/sync reported more pages without advancing the cursor")
                    break
                cursor = next_cursor

        except AggregatorError as e:
            logger.error(f"Error getting transactions: {e}")
            return []

        transactions = accumulator.results()
        transactions_synced_histogram.observe(len(transactions))
        return transactions
