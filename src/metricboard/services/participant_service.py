# src/metricboard/services/participant_service.py

"""Business logic for participants."""

from __future__ import annotations

import logging
from typing import Any

from metricboard.clock import Clock, utcnow
from metricboard.db import models
from metricboard.db.repository import Store
from metricboard.enums import ParticipantType
from metricboard.services.common import drop_nulls

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("name", "type", "participant_metadata")


class ParticipantService:
    def __init__(self, store: Store, clock: Clock = utcnow) -> None:
        self._store = store
        self._clock = clock

    async def create_participant(self, fields: dict[str, Any]) -> models.Participant:
        fields = drop_nulls(fields, _REQUIRED_FIELDS)
        if "type" in fields:
            fields["type"] = ParticipantType.parse(fields["type"])

        participant = await self._store.participants.create(models.Participant(**fields))
        await self._store.commit()
        logger.info("Participant created", extra={"participant_id": participant.id})
        return participant

    async def get_participant(self, participant_id: int) -> models.Participant:
        return await self._store.participants.get_or_raise(participant_id)

    async def list_participants(
        self,
        external_id: str | None = None,
        participant_type: ParticipantType | str | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[list[models.Participant], int]:
        criteria = []
        if external_id is not None:
            criteria.append(models.Participant.external_id == external_id)
        if participant_type is not None:
            criteria.append(
                models.Participant.type == ParticipantType.parse(participant_type)
            )
        items = await self._store.participants.find_all(
            *criteria, skip=skip, limit=limit
        )
        return items, await self._store.participants.count(*criteria)

    async def update_participant(
        self, participant_id: int, fields: dict[str, Any]
    ) -> models.Participant:
        participant = await self._store.participants.get_or_raise(participant_id)
        fields = drop_nulls(fields, _REQUIRED_FIELDS)
        if "type" in fields:
            fields["type"] = ParticipantType.parse(fields["type"])

        participant = await self._store.participants.update(participant, fields)
        await self._store.commit()
        return participant

    async def delete_participant(self, participant_id: int) -> None:
        """Soft delete. Recorded values stay; the next recompute drops the entries."""
        participant = await self._store.participants.get_or_raise(participant_id)
        await self._store.participants.soft_delete(participant, self._clock())
        await self._store.commit()
        logger.info("Participant deleted", extra={"participant_id": participant_id})
