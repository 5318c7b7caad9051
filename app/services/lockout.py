"""Failed-login lockout: count consecutive failures per account and lock it for a while.

State per account is (login_attempts, lock_until). Every transition is one UPDATE
statement so concurrent failed logins for the same account cannot lose increments.
"""

from datetime import datetime, timedelta

from sqlalchemy import and_, case, or_, update
from sqlalchemy.orm import Session

from app.models.user import User, ensure_utc, utcnow

MAX_LOGIN_ATTEMPTS = 5
LOCK_DURATION = timedelta(hours=2)


def is_locked(user: User, now: datetime | None = None) -> bool:
    """True iff lock_until is set and strictly in the future."""
    lock_until = ensure_utc(user.lock_until)
    if lock_until is None:
        return False
    return lock_until > (now or utcnow())


def register_failed_attempt(db: Session, user: User, now: datetime | None = None) -> User:
    """
    Record one failed password check.

    An expired lock restarts the count at 1 and clears the lock. Otherwise the count is
    incremented and, when it reaches MAX_LOGIN_ATTEMPTS on an account that is not
    currently locked, the account is locked for LOCK_DURATION.
    """
    now = now or utcnow()
    lock_expired = and_(User.lock_until.is_not(None), User.lock_until <= now)
    not_locked = or_(User.lock_until.is_(None), User.lock_until <= now)
    reaches_limit = User.login_attempts + 1 >= MAX_LOGIN_ATTEMPTS

    stmt = (
        update(User)
        .where(User.id == user.id)
        .values(
            login_attempts=case(
                (lock_expired, 1),
                else_=User.login_attempts + 1,
            ),
            lock_until=case(
                (lock_expired, None),
                (and_(reaches_limit, not_locked), now + LOCK_DURATION),
                else_=User.lock_until,
            ),
        )
        .execution_options(synchronize_session=False)
    )
    db.execute(stmt)
    db.commit()
    db.refresh(user)
    return user


def reset_attempts(db: Session, user: User, now: datetime | None = None) -> User:
    """Clear the failure count and any lock; record the successful login time."""
    now = now or utcnow()
    stmt = (
        update(User)
        .where(User.id == user.id)
        .values(login_attempts=0, lock_until=None, last_login=now)
        .execution_options(synchronize_session=False)
    )
    db.execute(stmt)
    db.commit()
    db.refresh(user)
    return user
