from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status

from sensorwriter.api.deps import get_partition_store, get_pipeline
from sensorwriter.core.errors import SerializationFailure, StoreFailure, ValidationFailure
from sensorwriter.repositories.base import PartitionStore
from sensorwriter.schemas.readings import SensorReadingMessage, WriteReadingResponse
from sensorwriter.services.pipeline import SensorReadingPipeline, WriteOutcome

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/readings",
    response_model=WriteReadingResponse,
    status_code=status.HTTP_201_CREATED,
)
def write_sensor_reading(
    message: SensorReadingMessage,
    response: Response,
    pipeline: Annotated[SensorReadingPipeline, Depends(get_pipeline)],
) -> WriteReadingResponse:
    try:
        outcome = pipeline.write_sensor_reading(message)
    except ValidationFailure as e:
        logger.warning(f"Rejected reading from relay {message.relay_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)
        ) from e
    except SerializationFailure as e:
        logger.error(f"Unreadable stored data for sensor {message.sensor_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Stored data could not be decoded",
        ) from e
    except StoreFailure as e:
        logger.error(f"Store failure while writing reading for {message.sensor_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Store unavailable",
        ) from e

    if outcome is WriteOutcome.THROTTLED:
        response.status_code = status.HTTP_202_ACCEPTED
    return WriteReadingResponse(status=outcome.value)


@router.get("/health", tags=["meta"])
def health(
    store: Annotated[PartitionStore, Depends(get_partition_store)],
) -> dict[str, str]:
    try:
        store.ping()
    except StoreFailure as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Store unavailable",
        ) from e
    return {"status": "ok"}
