"""Data access layer over the Appwrite document collections"""

from typing import Any, Dict, List, Optional
from horizon.config import settings
from horizon.domain.exceptions import AuthProviderError, NotFoundError
from horizon.domain.models import Bank, TransferRecord, User
from horizon.infrastructure.clients.appwrite import AppwriteClient, Query
from horizon.utils.date_utils import parse_provider_date


def _required(doc: Dict[str, Any], key: str) -> Any:
    try:
        return doc[key]
    except KeyError as e:
        raise AuthProviderError(f"Document {doc.get('$id')} is missing {key!r}") from e


async def list_all_documents(
    appwrite: AppwriteClient,
    database_id: str,
    collection_id: str,
    queries: List[str],
) -> List[Dict[str, Any]]:
    """
    Every document matching ``queries``, following cursorAfter pages.

    Stops once ``total`` documents are collected or a page comes back empty.
    """
    documents: List[Dict[str, Any]] = []
    while True:
        page_queries = [*queries, Query.limit(settings.appwrite_page_size)]
        if documents:
            page_queries.append(Query.cursor_after(_required(documents[-1], "$id")))

        result = await appwrite.list_documents(database_id, collection_id, page_queries)
        page = result.get("documents", [])
        documents.extend(page)

        if not page or len(documents) >= result.get("total", 0):
            return documents


def user_from_document(doc: Dict[str, Any]) -> User:
    return User(
        id=_required(doc, "$id"),
        user_id=_required(doc, "userId"),
        email=_required(doc, "email"),
        first_name=doc.get("firstName", ""),
        last_name=doc.get("lastName", ""),
        dwolla_customer_id=doc.get("dwollaCustomerId", ""),
        dwolla_customer_url=doc.get("dwollaCustomerUrl", ""),
        address1=doc.get("address1", ""),
        city=doc.get("city", ""),
        state=doc.get("state", ""),
        postal_code=doc.get("postalCode", ""),
        date_of_birth=doc.get("dateOfBirth", ""),
        ssn=doc.get("ssn", ""),
    )


def bank_from_document(doc: Dict[str, Any]) -> Bank:
    return Bank(
        id=_required(doc, "$id"),
        user_id=_required(doc, "userId"),
        bank_id=_required(doc, "bankId"),
        account_id=_required(doc, "accountId"),
        access_token=_required(doc, "accessToken"),
        funding_source_url=doc.get("fundingSourceUrl", ""),
        shareable_id=doc.get("shareableId", ""),
    )


def transfer_from_document(doc: Dict[str, Any]) -> TransferRecord:
    return TransferRecord(
        id=_required(doc, "$id"),
        name=doc.get("name", ""),
        amount=float(doc.get("amount", 0)),
        sender_id=doc.get("senderId", ""),
        sender_bank_id=doc.get("senderBankId", ""),
        receiver_id=doc.get("receiverId", ""),
        receiver_bank_id=doc.get("receiverBankId", ""),
        email=doc.get("email", ""),
        created_at=parse_provider_date(_required(doc, "$createdAt")),
        channel=doc.get("channel", "online"),
        category=doc.get("category", "Transfer"),
    )


class UserRepository:
    """Repository for user profile documents"""

    def __init__(self, appwrite: AppwriteClient):
        self.appwrite = appwrite
        self.database_id = settings.appwrite_database_id
        self.collection_id = settings.appwrite_user_collection_id

    async def create(self, user_id: str, profile: Dict[str, Any], dwolla_customer_id: str, dwolla_customer_url: str) -> User:
        doc = await self.appwrite.create_document(
            self.database_id,
            self.collection_id,
            {
                **profile,
                "userId": user_id,
                "dwollaCustomerId": dwolla_customer_id,
                "dwollaCustomerUrl": dwolla_customer_url,
            },
        )
        return user_from_document(doc)

    async def delete(self, document_id: str) -> None:
        await self.appwrite.delete_document(self.database_id, self.collection_id, document_id)

    async def get_by_user_id(self, user_id: str) -> User:
        """Look up the profile for an Appwrite account id"""
        result = await self.appwrite.list_documents(
            self.database_id,
            self.collection_id,
            [Query.equal("userId", user_id)],
        )
        documents = result.get("documents", [])
        if not documents:
            raise NotFoundError(f"No user profile for account {user_id}")
        return user_from_document(documents[0])


class BankRepository:
    """Repository for linked bank documents"""

    def __init__(self, appwrite: AppwriteClient):
        self.appwrite = appwrite
        self.database_id = settings.appwrite_database_id
        self.collection_id = settings.appwrite_bank_collection_id

    async def create(
        self,
        user_id: str,
        bank_id: str,
        account_id: str,
        access_token: str,
        funding_source_url: str,
        shareable_id: str,
    ) -> Bank:
        doc = await self.appwrite.create_document(
            self.database_id,
            self.collection_id,
            {
                "userId": user_id,
                "bankId": bank_id,
                "accountId": account_id,
                "accessToken": access_token,
                "fundingSourceUrl": funding_source_url,
                "shareableId": shareable_id,
            },
        )
        return bank_from_document(doc)

    async def get(self, document_id: str) -> Bank:
        doc = await self.appwrite.get_document(self.database_id, self.collection_id, document_id)
        return bank_from_document(doc)

    async def list_by_user(self, user_id: str) -> List[Bank]:
        documents = await list_all_documents(
            self.appwrite,
            self.database_id,
            self.collection_id,
            [Query.equal("userId", user_id)],
        )
        return [bank_from_document(doc) for doc in documents]

    async def get_by_account_id(self, account_id: str) -> Optional[Bank]:
        result = await self.appwrite.list_documents(
            self.database_id,
            self.collection_id,
            [Query.equal("accountId", account_id)],
        )
        documents = result.get("documents", [])
        return bank_from_document(documents[0]) if documents else None


class TransferRepository:
    """Repository for transfer documents recorded after Dwolla transfers"""

    def __init__(self, appwrite: AppwriteClient):
        self.appwrite = appwrite
        self.database_id = settings.appwrite_database_id
        self.collection_id = settings.appwrite_transaction_collection_id

    async def create(
        self,
        name: str,
        amount: str,
        sender_id: str,
        sender_bank_id: str,
        receiver_id: str,
        receiver_bank_id: str,
        email: str,
    ) -> TransferRecord:
        """``amount`` is the two-decimal string sent to Dwolla, stored unchanged"""
        doc = await self.appwrite.create_document(
            self.database_id,
            self.collection_id,
            {
                "name": name,
                "amount": amount,
                "senderId": sender_id,
                "senderBankId": sender_bank_id,
                "receiverId": receiver_id,
                "receiverBankId": receiver_bank_id,
                "email": email,
                "channel": "online",
                "category": "Transfer",
            },
        )
        return transfer_from_document(doc)

    async def list_by_bank(self, bank_id: str) -> List[TransferRecord]:
        """Transfers where the bank is either sender or receiver"""
        sent = await list_all_documents(
            self.appwrite,
            self.database_id,
            self.collection_id,
            [Query.equal("senderBankId", bank_id)],
        )
        received = await list_all_documents(
            self.appwrite,
            self.database_id,
            self.collection_id,
            [Query.equal("receiverBankId", bank_id)],
        )

        records: Dict[str, TransferRecord] = {}
        for doc in sent + received:
            record = transfer_from_document(doc)
            records[record.id] = record
        return list(records.values())
