from __future__ import annotations

from datetime import timezone
from typing import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from db import models
from domain.base_types import AssetId, FeedId, UserId
from domain.events import VaultEvent, VaultEventId, VaultEventType


class VaultEventRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create(self, event: VaultEvent) -> VaultEvent:
        orm_event = self._to_orm(event)
        self._session.add(orm_event)
        self._session.commit()
        self._session.refresh(orm_event)
        return self._to_domain(orm_event)

    def create_many(self, events: Iterable[VaultEvent]) -> None:
        self._session.add_all([self._to_orm(event) for event in events])
        self._session.commit()

    def get(self, event_id: UUID) -> VaultEvent | None:
        orm_event = self._session.get(models.VaultEventOrm, event_id)
        if orm_event is None:
            return None
        return self._to_domain(orm_event)

    def list(self) -> list[VaultEvent]:
        stmt = select(models.VaultEventOrm).order_by(models.VaultEventOrm.timestamp.asc())
        return [self._to_domain(row) for row in self._session.scalars(stmt)]

    def list_for_user(self, user_id: UserId) -> list[VaultEvent]:
        stmt = (
            select(models.VaultEventOrm)
            .where(models.VaultEventOrm.user_id == user_id)
            .order_by(models.VaultEventOrm.timestamp.asc())
        )
        return [self._to_domain(row) for row in self._session.scalars(stmt)]

    @staticmethod
    def _to_orm(event: VaultEvent) -> models.VaultEventOrm:
        return models.VaultEventOrm(
            id=event.id,
            timestamp=event.timestamp,
            event_type=event.event_type.value,
            user_id=event.user_id,
            asset_id=event.asset_id,
            amount=event.amount,
            usd_value=event.usd_value,
            feed_id=event.feed_id,
        )

    @staticmethod
    def _to_domain(orm_event: models.VaultEventOrm) -> VaultEvent:
        timestamp = orm_event.timestamp
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)

        return VaultEvent(
            id=VaultEventId(orm_event.id),
            timestamp=timestamp,
            event_type=VaultEventType(orm_event.event_type),
            user_id=UserId(orm_event.user_id),
            asset_id=AssetId(orm_event.asset_id),
            amount=orm_event.amount,
            usd_value=orm_event.usd_value,
            feed_id=FeedId(orm_event.feed_id) if orm_event.feed_id is not None else None,
        )
