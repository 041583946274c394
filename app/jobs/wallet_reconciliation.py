import logging
from typing import List

from sqlmodel import select

from app.database import new_session
from app.models.user import User
from app.services.wallet_service import ReconciliationReport, reconcile

logger = logging.getLogger(__name__)


def reconcile_all_wallets() -> List[ReconciliationReport]:
    """Fold every user's ledger and return the accounts that do not add up."""
    with new_session() as session:
        user_ids = session.exec(select(User.id)).all()
        mismatches = [
            report
            for report in (reconcile(session, user_id) for user_id in user_ids)
            if not report.consistent
        ]

    logger.info(f"Reconciled {len(user_ids)} wallets, {len(mismatches)} mismatched")
    return mismatches
