"""
Use case: Open a demo trading account.

Input: CreateAccountCommand (name, email)
Output: AccountResult
Side effects: Inserts a user with the fixed starting balance.
Failure cases: AccountAlreadyExistsError, PersistenceError.
"""

import logging

from app.application.portfolio.dtos import AccountResult, CreateAccountCommand
from app.domain.portfolio.entities import STARTING_BALANCE
from app.domain.portfolio.errors import AccountAlreadyExistsError
from app.domain.portfolio.ports import LedgerStore

logger = logging.getLogger(__name__)


class CreateAccountUseCase:
    """Creates a user funded with the starting balance."""

    def __init__(self, store: LedgerStore) -> None:
        self._store = store

    def execute(self, command: CreateAccountCommand) -> AccountResult:
        """Run the account creation use case.

        Args:
            command: Name and email of the new account.

        Returns:
            The created account.

        Raises:
            AccountAlreadyExistsError: If the email is already registered.
        """
        email = command.email.strip().lower()
        if self._store.get_user_by_email(email) is not None:
            raise AccountAlreadyExistsError(email)

        user = self._store.create_user(
            name=command.name.strip(), email=email, balance=STARTING_BALANCE
        )
        logger.info("Created account %s with balance %s", user.id, user.balance)

        return AccountResult(
            id=user.id,
            name=user.name,
            email=user.email,
            balance=user.balance,
            created_at=user.created_at,
        )
