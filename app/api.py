"""HTTP route definitions for the service."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from app.schemas import House, HouseNameRequest, IngestionResponse, IngestionStats
from datastore.houses import HouseStore, StoreOutcome
from services.errors import HouseNotFound
from services.pipeline import IngestionPipeline, build_default_pipeline

router = APIRouter()


def get_pipeline() -> IngestionPipeline:
    return build_default_pipeline()


def get_store(pipeline: IngestionPipeline = Depends(get_pipeline)) -> HouseStore:
    return pipeline.store


def _raise_for_outcome(outcome: StoreOutcome) -> None:
    if isinstance(outcome.error, HouseNotFound):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(outcome.error))
    if outcome.error is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(outcome.error))
    if outcome.persistence_error is not None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Change applied but not persisted: {outcome.persistence_error}",
        )


@router.get("/houses", response_model=list[House], summary="List monitored houses.")
async def list_houses(store: HouseStore = Depends(get_store)) -> list[House]:
    return list(store.snapshot())


@router.get("/houses/{house_id}", response_model=House, summary="Fetch a single house.")
async def get_house(house_id: str, store: HouseStore = Depends(get_store)) -> House:
    house = store.get(house_id)
    if house is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(HouseNotFound(house_id)),
        )
    return house


@router.post(
    "/houses",
    status_code=status.HTTP_201_CREATED,
    response_model=House,
    summary="Provision a new house.",
)
async def create_house(
    body: HouseNameRequest, store: HouseStore = Depends(get_store)
) -> House:
    outcome = store.create(body.name)
    _raise_for_outcome(outcome)
    assert outcome.house is not None
    return outcome.house


@router.patch("/houses/{house_id}", response_model=House, summary="Rename a house.")
async def rename_house(
    house_id: str, body: HouseNameRequest, store: HouseStore = Depends(get_store)
) -> House:
    outcome = store.rename(house_id, body.name)
    _raise_for_outcome(outcome)
    assert outcome.house is not None
    return outcome.house


@router.delete(
    "/houses/{house_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a house.",
)
async def delete_house(house_id: str, store: HouseStore = Depends(get_store)) -> Response:
    _raise_for_outcome(store.delete(house_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/telemetry/{namespace}/{measurement}",
    response_model=IngestionResponse,
    summary="Feed one raw telemetry message through the ingestion pipeline.",
)
async def ingest_telemetry(
    namespace: str,
    measurement: str,
    request: Request,
    pipeline: IngestionPipeline = Depends(get_pipeline),
) -> IngestionResponse:
    payload = await request.body()
    return pipeline.handle(f"{namespace}/{measurement}", payload)


@router.get(
    "/ingestion/stats",
    response_model=IngestionStats,
    summary="Counters of received, processed and dropped telemetry.",
)
async def ingestion_stats(pipeline: IngestionPipeline = Depends(get_pipeline)) -> IngestionStats:
    return pipeline.stats()


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck(store: HouseStore = Depends(get_store)) -> dict[str, str]:
    return {"status": "degraded" if store.dirty else "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
