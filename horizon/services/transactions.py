"""Transaction actions - transfer records stored in Appwrite"""

from typing import List
from horizon.domain.models import TransferRecord
from horizon.infrastructure.clients.appwrite import AppwriteClient
from horizon.infrastructure.database.repositories import TransferRepository


class TransactionService:
    def __init__(self, appwrite: AppwriteClient):
        self.transfers = TransferRepository(appwrite)

    async def create_transaction(
        self,
        name: str,
        amount: str,
        sender_id: str,
        sender_bank_id: str,
        receiver_id: str,
        receiver_bank_id: str,
        email: str,
    ) -> TransferRecord:
        return await self.transfers.create(
            name=name,
            amount=amount,
            sender_id=sender_id,
            sender_bank_id=sender_bank_id,
            receiver_id=receiver_id,
            receiver_bank_id=receiver_bank_id,
            email=email,
        )

    async def get_transactions_by_bank_id(self, bank_id: str) -> List[TransferRecord]:
        return await self.transfers.list_by_bank(bank_id)
