import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status

from backend.booking.errors import MissingRequiredFields, SlotTaken
from backend.booking.repository import AppointmentRepository
from backend.database import StorageUnavailable
from backend.models.appointment import Appointment, CreateAppointmentRequest
from backend.notifications.dispatcher import NotificationDispatcher

router = APIRouter(tags=['appointments'])

logger = logging.getLogger(__name__)


def get_repository(request: Request) -> AppointmentRepository:
    return request.app.state.repository


def get_dispatcher(request: Request) -> NotificationDispatcher:
    return request.app.state.dispatcher


@router.get('/appointments', response_model=list[Appointment])
def list_appointments(repository: AppointmentRepository = Depends(get_repository)):
    try:
        return repository.list_all()
    except StorageUnavailable as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail='Failed to read appointments',
        ) from exc


@router.post('/appointments', response_model=Appointment, status_code=status.HTTP_201_CREATED)
def create_appointment(
    background_tasks: BackgroundTasks,
    repository: AppointmentRepository = Depends(get_repository),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    data: CreateAppointmentRequest | None = None,
):
    try:
        return repository.book(
            data if data is not None else CreateAppointmentRequest(),
            on_booked=lambda appointment: background_tasks.add_task(dispatcher.dispatch, appointment),
        )
    except MissingRequiredFields as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message) from exc
    except SlotTaken as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.message) from exc
    except Exception as exc:
        logger.exception('Error saving appointment')
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail='Failed to save appointment',
        ) from exc
