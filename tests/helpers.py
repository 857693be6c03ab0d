"""Document builders shared by the reconciliation tests."""

from typing import Optional


def make_account(account_id: str, name: str, **overrides) -> dict:
    """Build an account entity the way the finance app stores it."""
    account = {
        "id": account_id,
        "name": name,
        "type": "bank_account",
        "currencyId": "usd",
        "initialBalance": 0,
        "isActive": True,
        "createdAt": "2025-01-01T00:00:00Z",
        "updatedAt": "2025-01-01T00:00:00Z",
    }
    account.update(overrides)
    return account


def make_transaction(transaction_id: str, amount: float, **overrides) -> dict:
    transaction = {
        "id": transaction_id,
        "date": "2025-03-14",
        "description": f"Transaction {transaction_id}",
        "amount": amount,
        "transactionTypeId": "tt-1",
        "fromAccountId": "acc-1",
        "createdAt": "2025-03-14T10:00:00Z",
        "updatedAt": "2025-03-14T10:00:00Z",
    }
    transaction.update(overrides)
    return transaction


def make_document(
    accounts: Optional[list] = None,
    categories: Optional[list] = None,
    transaction_types: Optional[list] = None,
    years: Optional[dict] = None,
) -> dict:
    """Build a document with the multi-year layout."""
    return {
        "version": "1.0.0",
        "years": years if years is not None else {},
        "accounts": accounts or [],
        "categories": categories or [],
        "transactionTypes": transaction_types or [],
        "archivedYears": [],
        "lastModified": "2025-01-01T00:00:00Z",
    }


def make_year(
    transactions: Optional[list] = None,
    budgets: Optional[list] = None,
    manual_assets: Optional[list] = None,
) -> dict:
    return {
        "transactions": transactions or [],
        "budgets": budgets or [],
        "manualAssets": manual_assets or [],
    }
