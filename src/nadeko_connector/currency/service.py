"""Currency balances and the transaction ledger.

Every balance change made here is paired with a ledger entry, and changes to
a user's balance are mirrored on the bot's own account so the amount of
currency in circulation stays constant. The bot account may go negative.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import func, insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from nadeko_connector.arguments import (
    check_safe,
    parse_amount,
    parse_page,
    parse_reason,
    parse_snowflake,
    utc_timestamp,
)
from nadeko_connector.db.models import CurrencyTransaction, DiscordUser
from nadeko_connector.errors import ConnectorError, InsufficientFunds, NotFound, PartialFailure

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


async def user_exists(db: AsyncSession, user_id: int) -> bool:
    result = await db.scalar(select(DiscordUser.id).where(DiscordUser.user_id == user_id))
    return result is not None


async def ensure_user(db: AsyncSession, user_id: int) -> None:
    if not await user_exists(db, user_id):
        msg = f"User {user_id} not found."
        raise NotFound(msg)


async def get_balance(db: AsyncSession, user_id: str) -> dict[str, Any]:
    uid = parse_snowflake(user_id, "userId")
    balance = await db.scalar(select(DiscordUser.currency_amount).where(DiscordUser.user_id == uid))
    if balance is None:
        msg = f"User {uid} not found."
        raise NotFound(msg)
    return {"userId": str(uid), "balance": balance}


async def set_balance(db: AsyncSession, user_id: str, amount: object) -> dict[str, Any]:
    """Overwrite a balance. No ledger entry is written, matching the bot's admin command."""
    uid = parse_snowflake(user_id, "userId")
    value = parse_amount(amount, "currency")

    result = await db.execute(
        update(DiscordUser)
        .where(DiscordUser.user_id == uid)
        .values(currency_amount=value)
    )
    if result.rowcount < 1:
        msg = f"User {uid} not found. No rows updated."
        raise NotFound(msg)
    await db.commit()

    logger.info("balance_set", user_id=uid, balance=value)
    return {"userId": str(uid), "balance": value}


async def insert_transaction(db: AsyncSession, user_id: int, amount: int, reason: str) -> int:
    """Append a ledger row and return its Id.

    The Id is MAX(Id) + 1 evaluated inside the INSERT itself, so SQLite's
    writer lock keeps two inserts from picking the same Id.
    """
    next_id = select(func.coalesce(func.max(CurrencyTransaction.id), 0) + 1).scalar_subquery()
    result = await db.execute(
        insert(CurrencyTransaction)
        .values(
            id=next_id,
            amount=amount,
            reason=reason,
            user_id=user_id,
            date_added=utc_timestamp(),
        )
        .returning(CurrencyTransaction.id)
    )
    return result.scalar_one()


async def create_transaction(db: AsyncSession, user_id: str, amount: object, reason: object) -> dict[str, Any]:
    """Record a ledger entry without touching the balance."""
    uid = parse_snowflake(user_id, "userId")
    value = parse_amount(amount, "currency")
    reason = parse_reason(reason)
    await ensure_user(db, uid)

    transaction_id = await insert_transaction(db, uid, value, reason)
    await db.commit()

    logger.info("transaction_created", user_id=uid, amount=value, transaction_id=transaction_id)
    return {"transactionId": transaction_id, "userId": str(uid)}


async def get_transactions(db: AsyncSession, user_id: str, start_position: object, items: object) -> dict[str, Any]:
    """Most recent transactions first."""
    uid = parse_snowflake(user_id, "userId")
    offset, limit = parse_page(start_position, items)
    await ensure_user(db, uid)

    result = await db.execute(
        select(CurrencyTransaction)
        .where(CurrencyTransaction.user_id == uid)
        .order_by(CurrencyTransaction.id.desc())
        .offset(offset)
        .limit(limit)
    )
    return {
        "userId": str(uid),
        "transactions": [
            {
                "transactionId": tx.id,
                "amount": tx.amount,
                "reason": tx.reason,
                "dateAdded": tx.date_added,
            }
            for tx in result.scalars()
        ],
    }


async def _apply_change(
    db: AsyncSession,
    user_id: int,
    delta: int,
    reason: str,
    *,
    allow_negative: bool,
) -> tuple[int, int]:
    """Adjust a balance and append the matching ledger row in the current transaction.

    The balance check and the write are a single conditional UPDATE.

    Returns:
        Tuple of (new balance, transaction id).
    """
    stmt = (
        update(DiscordUser)
        .where(DiscordUser.user_id == user_id)
        .values(currency_amount=DiscordUser.currency_amount + delta)
        .returning(DiscordUser.currency_amount)
    )
    if delta < 0 and not allow_negative:
        stmt = stmt.where(DiscordUser.currency_amount >= -delta)

    balance = (await db.execute(stmt)).scalar_one_or_none()
    if balance is None:
        if await user_exists(db, user_id):
            msg = f"User {user_id} does not have {-delta} currency."
            raise InsufficientFunds(msg)
        msg = f"User {user_id} not found."
        raise NotFound(msg)
    check_safe(balance, "balance")

    transaction_id = await insert_transaction(db, user_id, delta, reason)
    return balance, transaction_id


async def _mirror_on_bot(db: AsyncSession, bot_id: int, delta: int, reason: str) -> None:
    """Apply the opposite of a user's change to the bot account as its own unit."""
    try:
        await _apply_change(db, bot_id, -delta, reason, allow_negative=True)
        await db.commit()
    except (ConnectorError, SQLAlchemyError):
        await db.rollback()
        logger.exception("mirror_adjustment_failed", bot_id=bot_id, amount=-delta)
        msg = "Balance updated, but the bot account could not be adjusted."
        raise PartialFailure(msg) from None


async def _transfer(db: AsyncSession, bot_id: str, user_id: str, amount: object, reason: object, sign: int) -> dict[str, Any]:
    uid = parse_snowflake(user_id, "userId")
    delta = sign * abs(parse_amount(amount, "currency"))
    reason = parse_reason(reason)
    bot_uid = parse_snowflake(bot_id, "bot id")
    is_bot = uid == bot_uid

    balance, transaction_id = await _apply_change(db, uid, delta, reason, allow_negative=is_bot)
    await db.commit()
    logger.info("balance_adjusted", user_id=uid, amount=delta, balance=balance, transaction_id=transaction_id)

    if not is_bot:
        await _mirror_on_bot(db, bot_uid, delta, reason)

    return {
        "userId": str(uid),
        "amount": delta,
        "balance": balance,
        "transactionId": transaction_id,
    }


async def add_currency(db: AsyncSession, bot_id: str, user_id: str, amount: object, reason: object) -> dict[str, Any]:
    """Credit ``|amount|`` to a user, debiting the bot account."""
    return await _transfer(db, bot_id, user_id, amount, reason, sign=1)


async def subtract_currency(db: AsyncSession, bot_id: str, user_id: str, amount: object, reason: object) -> dict[str, Any]:
    """Debit ``|amount|`` from a user, crediting the bot account.

    Raises:
        InsufficientFunds: If the user holds less than ``|amount|`` (never for the bot itself).
    """
    return await _transfer(db, bot_id, user_id, amount, reason, sign=-1)
