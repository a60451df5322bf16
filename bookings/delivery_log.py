import logging

from sqlalchemy.exc import IntegrityError

from models import db
from models.email_log import EmailLog

logger = logging.getLogger(__name__)


def has_been_sent(booking_id: int, email_type: str) -> bool:
    return (
        EmailLog.query
        .filter_by(booking_id=booking_id, email_type=email_type)
        .first()
    ) is not None


def record_sent(booking_id: int, email_type: str, status: str, delivery_id=None) -> bool:
    """
    Append a delivery entry. Returns False when another pass already wrote
    the same (booking_id, email_type) entry; that duplicate is not an error.
    """
    row = EmailLog(
        booking_id=booking_id,
        email_type=email_type,
        status=status,
        delivery_id=delivery_id,
    )
    db.session.add(row)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        logger.info("Delivery log already has %s for booking %s", email_type, booking_id)
        return False
    return True


def list_entries(booking_id=None, email_type=None, status=None, limit=200):
    q = EmailLog.query
    if booking_id is not None:
        q = q.filter_by(booking_id=booking_id)
    if email_type:
        q = q.filter_by(email_type=email_type)
    if status:
        q = q.filter_by(status=status)

    if limit is None:
        limit = 200
    limit = max(1, min(limit, 500))
    return q.order_by(EmailLog.sent_at.desc(), EmailLog.id.desc()).limit(limit).all()
