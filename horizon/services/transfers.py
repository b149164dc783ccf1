"""Payment transfers between linked banks"""

import logging
from decimal import Decimal
from horizon.domain.exceptions import (
    ForbiddenError,
    HorizonError,
    NotFoundError,
    ProcessorError,
    TransferError,
    UnrecordedTransferError,
)
from horizon.domain.models import TransferRecord, User
from horizon.infrastructure.clients.appwrite import AppwriteClient
from horizon.infrastructure.clients.dwolla import DwollaClient
from horizon.infrastructure.database.repositories import BankRepository
from horizon.infrastructure.observability.metrics import record_outcome, transfer_counter
from horizon.services.transactions import TransactionService
from horizon.utils.ids import decrypt_id

logger = logging.getLogger(__name__)


class TransferService:
    def __init__(self, appwrite: AppwriteClient, dwolla: DwollaClient):
        self.dwolla = dwolla
        self.banks = BankRepository(appwrite)
        self.transactions = TransactionService(appwrite)

    async def create_transfer(
        self,
        user: User,
        sender_bank_id: str,
        shareable_id: str,
        amount: Decimal,
        name: str,
        email: str,
    ) -> TransferRecord:
        """
        Send money from one of the user's banks to the bank behind a shareable id.

        Raises:
            NotFoundError: Unknown sender bank or shareable id
            ForbiddenError: Sender bank belongs to someone else
            TransferError: Invalid amount, same source and destination, or Dwolla failure
            UnrecordedTransferError: Money moved but the transfer record was not saved
        """
        if amount <= 0:
            raise TransferError("Transfer amount must be positive")

        try:
            receiver_account_id = decrypt_id(shareable_id)
        except ValueError as e:
            raise NotFoundError("Receiver account not found") from e

        receiver_bank = await self.banks.get_by_account_id(receiver_account_id)
        if receiver_bank is None:
            raise NotFoundError("Receiver account not found")

        sender_bank = await self.banks.get(sender_bank_id)
        if sender_bank.user_id != user.id:
            raise ForbiddenError("Sender bank does not belong to the current user")
        if sender_bank.id == receiver_bank.id:
            raise TransferError("Source and destination accounts are the same")

        value = str(amount.quantize(Decimal("0.01")))
        try:
            transfer_url = await self.dwolla.create_transfer(
                sender_bank.funding_source_url,
                receiver_bank.funding_source_url,
                value,
            )
        except ProcessorError as e:
            record_outcome(transfer_counter, False)
            raise TransferError(f"Transfer failed: {e}") from e

        record_outcome(transfer_counter, True)
        logger.info(
            "Transfer created",
            extra={"transfer_url": transfer_url, "sender_bank_id": sender_bank.id, "receiver_bank_id": receiver_bank.id},
        )

        try:
            return await self.transactions.create_transaction(
                name=name,
                amount=value,
                sender_id=sender_bank.user_id,
                sender_bank_id=sender_bank.id,
                receiver_id=receiver_bank.user_id,
                receiver_bank_id=receiver_bank.id,
                email=email,
            )
        except HorizonError as e:
            logger.error(
                f"Transfer sent but not recorded: {e}",
                extra={
                    "transfer_url": transfer_url,
                    "sender_bank_id": sender_bank.id,
                    "receiver_bank_id": receiver_bank.id,
                    "amount": value,
                },
            )
            raise UnrecordedTransferError(
                f"Transfer {transfer_url} was sent but could not be recorded; do not retry",
                transfer_url=transfer_url,
            ) from e
