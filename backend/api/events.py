from fastapi import APIRouter, Depends, Response
from typing import List

from constants import HTTPStatus
from dependencies import get_event_repository
from exceptions import InvalidArgumentError, NotFoundError
from repositories.event_repository import EventRepository
from schemas import Event, CountResponse
from utils.error_handlers import handle_api_errors

router = APIRouter()


@router.get("/events", response_model=List[Event])
@handle_api_errors("List events")
def list_events(repo: EventRepository = Depends(get_event_repository)):
    """All events in insertion order."""
    return repo.find_all()


@router.get("/events/count", response_model=CountResponse)
@handle_api_errors("Count events")
def count_events(repo: EventRepository = Depends(get_event_repository)):
    return CountResponse(count=repo.count())


@router.get("/events/{event_id}", response_model=Event)
@handle_api_errors("Get event")
def get_event(event_id: int, repo: EventRepository = Depends(get_event_repository)):
    event = repo.find_by_id(event_id)
    if event is None:
        raise NotFoundError(repo.entity_type, event_id)
    return event


@router.post("/events", response_model=Event, status_code=HTTPStatus.CREATED)
@handle_api_errors("Create event")
def create_event(event: Event, repo: EventRepository = Depends(get_event_repository)):
    if event.id is not None:
        raise InvalidArgumentError(
            "Event id is assigned by the server; use PUT to update",
            invalid_fields={"id": event.id},
        )
    return repo.save(event)


@router.put("/events/{event_id}", response_model=Event)
@handle_api_errors("Update event")
def update_event(
    event_id: int,
    event: Event,
    repo: EventRepository = Depends(get_event_repository)
):
    return repo.save(event.model_copy(update={'id': event_id}))


@router.delete("/events/{event_id}", status_code=HTTPStatus.NO_CONTENT, response_class=Response)
@handle_api_errors("Delete event")
def delete_event(event_id: int, repo: EventRepository = Depends(get_event_repository)):
    repo.delete_by_id(event_id)
    return Response(status_code=HTTPStatus.NO_CONTENT)
