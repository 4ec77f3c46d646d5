"""Transaction builders shared by the test modules."""

from datetime import date, datetime
from decimal import Decimal
from typing import Union

from ledger_recon.models.transaction import SourceType, Transaction, TransactionType

MARCH_15 = date(2024, 3, 15)


def system_txn(
    txn_id: str,
    amount: Union[str, float],
    txn_type: TransactionType,
    when: Union[date, datetime] = MARCH_15,
    source: str = "BCA",
) -> Transaction:
    """System ledger record; debits arrive as positive amounts."""
    return Transaction(
        id=txn_id,
        source_type=SourceType.SYSTEM,
        transaction_date=when,
        amount=Decimal(str(amount)),
        type=txn_type,
        source=source,
    )


def bank_txn(
    txn_id: str,
    amount: Union[str, float],
    txn_type: TransactionType,
    when: Union[date, datetime] = MARCH_15,
    source: str = "BCA",
) -> Transaction:
    """Bank statement record; debits arrive as negative amounts."""
    return Transaction(
        id=txn_id,
        source_type=SourceType.BANK,
        transaction_date=when,
        amount=Decimal(str(amount)),
        type=txn_type,
        source=source,
    )
