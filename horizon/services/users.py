"""User actions - sign-up, sessions and bank linking"""

import logging
from typing import List, Optional, Tuple
from horizon.domain.exceptions import (
    AggregatorError,
    AuthProviderError,
    HorizonError,
    NotAuthenticatedError,
    NotFoundError,
    ProcessorError,
    SignUpError,
)
from horizon.domain.models import Bank, NewUser, User
from horizon.infrastructure.clients.appwrite import AppwriteClient
from horizon.infrastructure.clients.dwolla import DwollaClient
from horizon.infrastructure.clients.plaid import PlaidClient, first_account
from horizon.infrastructure.database.repositories import BankRepository, UserRepository
from horizon.infrastructure.observability.metrics import (
    banks_linked_counter,
    record_outcome,
    sign_in_counter,
    sign_up_counter,
)
from horizon.utils.ids import encrypt_id, extract_customer_id_from_url

logger = logging.getLogger(__name__)


class UserService:
    """Account lifecycle across Appwrite, Dwolla and Plaid"""

    def __init__(self, appwrite: AppwriteClient, plaid: PlaidClient, dwolla: DwollaClient):
        self.appwrite = appwrite
        self.plaid = plaid
        self.dwolla = dwolla
        self.users = UserRepository(appwrite)
        self.banks = BankRepository(appwrite)

    async def sign_in(self, email: str, password: str) -> str:
        """Create a session and return its secret for the session cookie"""
        try:
            session = await self.appwrite.create_email_password_session(email, password)
        except AuthProviderError:
            record_outcome(sign_in_counter, False)
            raise

        record_outcome(sign_in_counter, True)
        logger.info("User signed in", extra={"appwrite_user_id": session.get("userId")})
        return session["secret"]

    async def sign_up(self, new_user: NewUser, password: str) -> Tuple[User, str]:
        """
        Create the Appwrite account, Dwolla customer and profile document,
        then open a session.

        All steps succeed or the account is removed again, so a user can never
        sign in without a profile and a payments customer.

        Returns:
            (profile, session secret)

        Raises:
            SignUpError: If any step fails
        """
        account_id: Optional[str] = None
        dwolla_customer_url: Optional[str] = None
        profile: Optional[User] = None

        try:
            account = await self.appwrite.create_account(new_user.email, password, f"{new_user.first_name} {new_user.last_name}")
            account_id = account.get("$id")
            if not account_id:
                raise AuthProviderError("Appwrite did not return an account id")

            dwolla_customer_url = await self.dwolla.create_customer(new_user.dwolla_customer())
            dwolla_customer_id = extract_customer_id_from_url(dwolla_customer_url)

            profile = await self.users.create(
                account_id,
                new_user.profile(),
                dwolla_customer_id=dwolla_customer_id,
                dwolla_customer_url=dwolla_customer_url,
            )

            session = await self.appwrite.create_email_password_session(new_user.email, password)

        except HorizonError as e:
            record_outcome(sign_up_counter, False)
            logger.error(f"Sign-up failed: {e}", extra={"appwrite_user_id": account_id})
            await self._rollback_sign_up(account_id, dwolla_customer_url, profile)
            raise SignUpError(f"Failed to create user account: {e}") from e

        record_outcome(sign_up_counter, True)
        logger.info("User signed up", extra={"appwrite_user_id": account_id, "user_document_id": profile.id})
        return profile, session["secret"]

    async def _rollback_sign_up(
        self, account_id: Optional[str], dwolla_customer_url: Optional[str], profile: Optional[User]
    ) -> None:
        # Dwolla has no delete for customers
        if dwolla_customer_url:
            logger.warning("Orphaned Dwolla customer after failed sign-up", extra={"dwolla_customer_url": dwolla_customer_url})

        if profile is not None:
            try:
                await self.users.delete(profile.id)
            except HorizonError as e:
                logger.error(f"Could not remove profile {profile.id} after failed sign-up: {e}")

        if account_id is not None:
            try:
                await self.appwrite.delete_user(account_id)
            except HorizonError as e:
                logger.error(f"Could not remove account {account_id} after failed sign-up: {e}")

    async def get_logged_in_user(self, session_secret: Optional[str]) -> Optional[User]:
        """Profile for the session, or None for guests and invalid sessions"""
        if not session_secret:
            return None

        try:
            account = await self.appwrite.get_account(session_secret)
            return await self.get_user_info(account["$id"])
        except NotAuthenticatedError:
            logger.debug("Session is not authenticated")
            return None
        except (AuthProviderError, NotFoundError, KeyError) as e:
            logger.error(f"Could not resolve logged-in user: {e}")
            return None

    async def logout(self, session_secret: Optional[str]) -> None:
        """Delete the current session. Failures are logged, never raised."""
        if not session_secret:
            return

        try:
            await self.appwrite.delete_session(session_secret, "current")
        except HorizonError as e:
            logger.warning(f"Error deleting session on logout: {e}")

    async def get_user_info(self, user_id: str) -> User:
        return await self.users.get_by_user_id(user_id)

    async def create_link_token(self, user: User) -> str:
        return await self.plaid.link_token_create(client_user_id=user.id, client_name=user.full_name)

    async def exchange_public_token(self, public_token: str, user: User) -> Bank:
        """
        Link a bank after Plaid Link completes.

        Flow:
        1. Exchange the public token for an access token and item id
        2. Fetch the item's first account
        3. Create a Dwolla processor token for that account
        4. Attach it to the user's Dwolla customer as a funding source
        5. Persist the bank document

        Raises:
            AggregatorError, ProcessorError, AuthProviderError
        """
        exchange = await self.plaid.item_public_token_exchange(public_token)
        access_token = exchange["access_token"]

        try:
            accounts = await self.plaid.accounts_get(access_token)
            account_data = first_account(accounts)

            processor_token = await self.plaid.processor_token_create(access_token, account_data["account_id"], "dwolla")

            funding_source_url = await self.dwolla.add_funding_source(
                user.dwolla_customer_id,
                processor_token,
                account_data["name"],
            )
            if not funding_source_url:
                raise ProcessorError("Failed to create funding source URL")

            bank = await self.create_bank_account(
                user_id=user.id,
                bank_id=exchange["item_id"],
                account_id=account_data["account_id"],
                access_token=access_token,
                funding_source_url=funding_source_url,
                shareable_id=encrypt_id(account_data["account_id"]),
            )

        except (HorizonError, KeyError) as e:
            logger.error(f"Bank linking failed: {e}", extra={"user_document_id": user.id})
            await self._remove_item(access_token)
            if isinstance(e, KeyError):
                raise AggregatorError(f"Plaid account is missing {e}") from e
            raise

        banks_linked_counter.inc()
        logger.info("Bank linked", extra={"user_document_id": user.id, "bank_document_id": bank.id})
        return bank

    async def _remove_item(self, access_token: str) -> None:
        try:
            await self.plaid.item_remove(access_token)
        except AggregatorError as e:
            logger.warning(f"Could not remove Plaid item after failed link: {e}")

    async def create_bank_account(
        self,
        user_id: str,
        bank_id: str,
        account_id: str,
        access_token: str,
        funding_source_url: str,
        shareable_id: str,
    ) -> Bank:
        return await self.banks.create(
            user_id=user_id,
            bank_id=bank_id,
            account_id=account_id,
            access_token=access_token,
            funding_source_url=funding_source_url,
            shareable_id=shareable_id,
        )

    async def get_banks(self, user_id: str) -> List[Bank]:
        return await self.banks.list_by_user(user_id)

    async def get_bank(self, document_id: str) -> Bank:
        return await self.banks.get(document_id)

    async def get_bank_by_account_id(self, account_id: str) -> Optional[Bank]:
        return await self.banks.get_by_account_id(account_id)
