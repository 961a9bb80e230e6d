"""Unit tests for the ORM models defined in murmur.models.

These cover table names, the constraints the services rely on and the
profile helpers used in realtime payloads.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from murmur.models import BlockedUser, CallHistory, Gift, Message, Notification, User
from tests.factories import make_user


def test_table_names():
    """Model classes expose expected __tablename__ values."""
    assert User.__tablename__ == "users"
    assert BlockedUser.__tablename__ == "blocked_users"
    assert Message.__tablename__ == "messages"
    assert Notification.__tablename__ == "notifications"
    assert Gift.__tablename__ == "gifts"
    assert CallHistory.__tablename__ == "call_history"


def test_display_name_falls_back_to_username(db_session):
    named = make_user(db_session, username="ann", full_name="Ann Lee")
    bare = make_user(db_session, username="ben", full_name=None)

    assert named.display_name == "Ann Lee"
    assert bare.display_name == "ben"
    assert bare.public_profile() == {
        "id": bare.id,
        "username": "ben",
        "fullName": None,
        "profileImage": None,
    }


def test_new_users_start_offline_with_empty_balances(db_session):
    user = User(username="fresh")
    db_session.add(user)
    db_session.commit()

    assert user.is_online is False
    assert user.diamonds == 0
    assert user.coins == 0
    assert len(user.id) == 32


def test_gift_price_must_be_positive(db_session, test_user, other_user):
    db_session.add(
        Gift(sender_id=test_user.id, receiver_id=other_user.id, gift_type="x", gift_name="X", price=0)
    )
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


def test_block_pair_is_unique(db_session, test_user, other_user):
    db_session.add(BlockedUser(blocker_id=test_user.id, blocked_id=other_user.id))
    db_session.commit()
    db_session.add(BlockedUser(blocker_id=test_user.id, blocked_id=other_user.id))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


def test_message_media_refs(db_session, test_user, other_user):
    message = Message(
        sender_id=test_user.id, receiver_id=other_user.id, image="a.png", video=None
    )
    assert message.media_refs == ["a.png"]
