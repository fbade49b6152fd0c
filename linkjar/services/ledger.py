"""Ledger reads and audit logging shared by the payment engines.

Plain query helpers over accounts / profiles / tips, plus the audit log
writer used to record what happened to each paid checkout session.
"""

import logging

from sqlalchemy.exc import IntegrityError

from linkjar.extensions import db
from linkjar.models.account import Account
from linkjar.models.audit import AuditEvent
from linkjar.models.profile import Profile
from linkjar.models.tip import Tip

logger = logging.getLogger(__name__)


def get_account(account_id):
    if not account_id:
        return None
    return db.session.get(Account, account_id)


def get_account_by_username(username):
    if not username:
        return None
    return Account.query.filter(
        db.func.lower(Account.username) == username.lower()
    ).first()


def get_account_by_email(email):
    if not email:
        return None
    return Account.query.filter(
        db.func.lower(Account.email) == email.strip().lower()
    ).first()


def get_account_by_session(stripe_session_id):
    return Account.query.filter_by(stripe_session_id=stripe_session_id).first()


def get_profile(profile_id):
    if not profile_id:
        return None
    return db.session.get(Profile, profile_id)


def get_tip_by_session(stripe_session_id):
    return Tip.query.filter_by(stripe_session_id=stripe_session_id).first()


def list_tips_for_profile(profile_id, limit=None):
    """Tips for a profile, newest first."""
    query = Tip.query.filter_by(profile_id=profile_id).order_by(
        Tip.created_at.desc()
    )
    if limit:
        query = query.limit(limit)
    return query.all()


def record_audit(action, reference=None, account_id=None, metadata=None):
    """Write an audit event in its own commit.

    (action, reference) is unique, so logging the same outcome for a
    replayed webhook is a no-op. Returns True if a new row was written.
    Callers must not have pending changes in the session.
    """
    event = AuditEvent(
        action=action,
        reference=reference,
        account_id=account_id,
        metadata_=metadata or {},
    )
    db.session.add(event)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        logger.info(f"Audit {action} for {reference} already recorded")
        return False
    return True
