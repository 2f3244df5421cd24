# src/metricboard/services/metric_service.py

"""Business logic for metrics and recorded metric values."""

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any

from metricboard.clock import Clock, to_utc, utcnow
from metricboard.db import models
from metricboard.db.repository import MetricValueRepository, Store
from metricboard.enums import AggregationType, MetricDataType, ResetPeriod
from metricboard.exceptions import (
    DuplicateMetricNameError,
    InvalidDateRangeError,
    InvalidMetricValueError,
)
from metricboard.services.common import drop_nulls, normalize_times

logger = logging.getLogger(__name__)

_REQUIRED_METRIC_FIELDS = (
    "name",
    "description",
    "data_type",
    "aggregation_type",
    "reset_period",
    "is_higher_better",
)
_REQUIRED_VALUE_FIELDS = ("value", "timestamp", "context")


def _parse_vocabularies(fields: dict[str, Any]) -> dict[str, Any]:
    if "data_type" in fields:
        fields["data_type"] = MetricDataType.parse(fields["data_type"])
    if "aggregation_type" in fields:
        fields["aggregation_type"] = AggregationType.parse(fields["aggregation_type"])
    if "reset_period" in fields:
        fields["reset_period"] = ResetPeriod.parse(fields["reset_period"])
    return fields


def check_value(metric: models.Metric, value: float) -> None:
    """
    Validates a raw value against the metric's data type.

    Raises:
        InvalidMetricValueError: If the value is not finite, a boolean metric
            gets something other than 0/1, or an integer metric gets a fraction
    """
    if not math.isfinite(value):
        raise InvalidMetricValueError(metric.id, value, "value must be finite")
    data_type = MetricDataType.parse(metric.data_type)
    if data_type is MetricDataType.BOOLEAN and value not in (0, 1):
        raise InvalidMetricValueError(metric.id, value, "boolean metrics take 0 or 1")
    if data_type is MetricDataType.INTEGER and not float(value).is_integer():
        raise InvalidMetricValueError(
            metric.id, value, "integer metrics take whole numbers"
        )


class MetricService:
    def __init__(self, store: Store, clock: Clock = utcnow) -> None:
        self._store = store
        self._clock = clock

    # ---------------------------------------------------------------
    # Metrics
    # ---------------------------------------------------------------

    async def _check_name_free(self, name: str, metric_id: int | None = None) -> None:
        existing = await self._store.metrics.find_by_name(name)
        if existing is not None and existing.id != metric_id:
            raise DuplicateMetricNameError(name)

    async def create_metric(self, fields: dict[str, Any]) -> models.Metric:
        """
        Create a metric definition.

        Raises:
            DuplicateMetricNameError: If a live metric already uses the name
            InvalidEnumValueError: If a vocabulary field is unknown
        """
        fields = _parse_vocabularies(drop_nulls(fields, _REQUIRED_METRIC_FIELDS))
        await self._check_name_free(fields["name"])

        metric = await self._store.metrics.create(models.Metric(**fields))
        await self._store.commit()
        logger.info(
            "Metric created", extra={"metric_id": metric.id, "metric_name": metric.name}
        )
        return metric

    async def get_metric(self, metric_id: int) -> models.Metric:
        return await self._store.metrics.get_or_raise(metric_id)

    async def list_metrics(
        self, skip: int = 0, limit: int = 50
    ) -> tuple[list[models.Metric], int]:
        items = await self._store.metrics.find_all(skip=skip, limit=limit)
        return items, await self._store.metrics.count()

    async def update_metric(
        self, metric_id: int, fields: dict[str, Any]
    ) -> models.Metric:
        metric = await self._store.metrics.get_or_raise(metric_id)
        fields = _parse_vocabularies(drop_nulls(fields, _REQUIRED_METRIC_FIELDS))

        if "name" in fields and fields["name"] != metric.name:
            await self._check_name_free(fields["name"], metric.id)

        new_aggregation = fields.get("aggregation_type")
        if new_aggregation is not None and new_aggregation != metric.aggregation_type:
            # Changes how every recorded value of this metric is read
            logger.warning(
                "Metric aggregation type changed",
                extra={
                    "metric_id": metric.id,
                    "old_aggregation_type": str(metric.aggregation_type),
                    "new_aggregation_type": str(new_aggregation),
                },
            )

        metric = await self._store.metrics.update(metric, fields)
        await self._store.commit()
        return metric

    async def delete_metric(self, metric_id: int) -> None:
        metric = await self._store.metrics.get_or_raise(metric_id)
        await self._store.metrics.soft_delete(metric, self._clock())
        await self._store.commit()
        logger.info("Metric deleted", extra={"metric_id": metric_id})

    # ---------------------------------------------------------------
    # Metric values
    # ---------------------------------------------------------------

    async def record_value(
        self,
        metric_id: int,
        participant_id: int,
        value: float,
        timestamp: datetime | None = None,
        source: str | None = None,
        context: dict | None = None,
    ) -> models.MetricValue:
        """
        Record one observation.

        The timestamp defaults to the current time and is stored in UTC.

        Raises:
            MetricNotFoundError, ParticipantNotFoundError
            InvalidMetricValueError: If the value does not fit the metric
        """
        metric = await self._store.metrics.get_or_raise(metric_id)
        await self._store.participants.get_or_raise(participant_id)
        check_value(metric, value)

        metric_value = await self._store.metric_values.create(
            models.MetricValue(
                metric_id=metric.id,
                participant_id=participant_id,
                value=float(value),
                timestamp=to_utc(timestamp) if timestamp else self._clock(),
                source=source,
                context=context or {},
            )
        )
        await self._store.commit()
        logger.debug(
            "Metric value recorded",
            extra={
                "metric_id": metric.id,
                "participant_id": participant_id,
                "metric_value_id": metric_value.id,
            },
        )
        return metric_value

    async def get_value(self, value_id: int) -> models.MetricValue:
        return await self._store.metric_values.get_or_raise(value_id)

    async def list_values(
        self,
        metric_id: int | None = None,
        participant_id: int | None = None,
        from_time: datetime | None = None,
        to_time: datetime | None = None,
        newest_first: bool = True,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[list[models.MetricValue], int]:
        """Filtered listing by timestamp. The time range is inclusive."""
        from_time = to_utc(from_time) if from_time else None
        to_time = to_utc(to_time) if to_time else None
        if from_time and to_time and from_time > to_time:
            raise InvalidDateRangeError(from_time, to_time)

        criteria = MetricValueRepository.filters(
            metric_id, participant_id, from_time, to_time
        )
        items = await self._store.metric_values.find_all(
            *criteria,
            order_by=(
                (models.MetricValue.timestamp.desc(), models.MetricValue.id.desc())
                if newest_first
                else (models.MetricValue.timestamp, models.MetricValue.id)
            ),
            skip=skip,
            limit=limit,
        )
        return items, await self._store.metric_values.count(*criteria)

    async def update_value(
        self, value_id: int, fields: dict[str, Any]
    ) -> models.MetricValue:
        metric_value = await self._store.metric_values.get_or_raise(value_id)
        fields = normalize_times(drop_nulls(fields, _REQUIRED_VALUE_FIELDS), "timestamp")
        if "value" in fields:
            metric = await self._store.metrics.get_or_raise(metric_value.metric_id)
            check_value(metric, fields["value"])
            fields["value"] = float(fields["value"])

        metric_value = await self._store.metric_values.update(metric_value, fields)
        await self._store.commit()
        return metric_value

    async def delete_value(self, value_id: int) -> None:
        metric_value = await self._store.metric_values.get_or_raise(value_id)
        await self._store.metric_values.soft_delete(metric_value, self._clock())
        await self._store.commit()
