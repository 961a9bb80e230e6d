"""Atomic gift transfers between user balances."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import update
from sqlalchemy.orm import Session

from murmur.models import Gift, User
from murmur.services.errors import InsufficientBalance, NotFoundOrBlocked, ValidationFailure

logger = logging.getLogger(__name__)


def send_gift(
    db: Session,
    sender_id: str,
    receiver_id: str,
    *,
    gift_type: str,
    gift_name: str,
    price: int,
) -> dict[str, Any]:
    """Move ``price`` from the sender's diamonds to the receiver's coins and record the gift.

    The debit is a conditional update (``diamonds >= price``) so two concurrent
    sends can never both pass the balance check. Debit, credit and the Gift row
    are committed together or not at all.

    Raises:
        ValidationFailure: If the price is not positive or the sender targets itself.
        InsufficientBalance: If the sender cannot afford ``price``.
        NotFoundOrBlocked: If the receiver does not exist or is blocked.
    """
    if price <= 0:
        raise ValidationFailure("Gift price must be a positive integer")
    if sender_id == receiver_id:
        raise ValidationFailure("Cannot send a gift to yourself")

    try:
        debit = db.execute(
            update(User)
            .where(User.id == sender_id, User.diamonds >= price)
            .values(diamonds=User.diamonds - price)
            .execution_options(synchronize_session=False)
        )
        if debit.rowcount != 1:
            raise InsufficientBalance()

        credit = db.execute(
            update(User)
            .where(User.id == receiver_id, User.is_blocked.is_(False))
            .values(coins=User.coins + price)
            .execution_options(synchronize_session=False)
        )
        if credit.rowcount != 1:
            raise NotFoundOrBlocked("Gift receiver not found or blocked")

        gift = Gift(
            sender_id=sender_id,
            receiver_id=receiver_id,
            gift_type=gift_type,
            gift_name=gift_name,
            price=price,
        )
        db.add(gift)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Gift %s (%d) sent from %s to %s", gift_name, price, sender_id, receiver_id)
    return {
        "id": gift.id,
        "senderId": sender_id,
        "receiverId": receiver_id,
        "giftType": gift_type,
        "giftName": gift_name,
        "price": price,
    }
