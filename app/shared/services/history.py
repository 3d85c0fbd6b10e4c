# app/shared/services/history.py
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.shared.database.models import HistoryEntry


def record_history(
    db: Session,
    user_id: int,
    entity: str,
    entity_id: int,
    action: str,
    quantity: Optional[int] = None,
    commit: bool = True
) -> HistoryEntry:
    """Registra uma ação no histórico (quem, o quê, em qual entidade)"""
    entry = HistoryEntry(
        user_id=user_id,
        entity=entity,
        entity_id=entity_id,
        action=action,
        quantity=quantity,
        created_at=datetime.now()
    )
    db.add(entry)
    if commit:
        db.commit()
        db.refresh(entry)
    return entry
