import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from nailbook.routes.appointment_routes import get_sender
from nailbook.services.notifications import NotificationSender

logger = logging.getLogger(__name__)

router = APIRouter(tags=['messages'])


class SendMessageRequest(BaseModel):
    recipientPhone: str | None = None
    name: str | None = None
    date: str | None = None
    time: str | None = None
    isCancellation: bool = False
    sendToAdmin: bool = False


@router.post('/send-message')
def send_message(data: SendMessageRequest, sender: NotificationSender = Depends(get_sender)):
    if not (data.recipientPhone and data.name and data.date and data.time):
        logger.error(
            'Missing required fields: recipientPhone=%s name=%s date=%s time=%s',
            data.recipientPhone,
            data.name,
            data.date,
            data.time,
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={'success': False, 'error': 'Missing required fields'},
        )

    result = sender.send(data.recipientPhone, data.name, data.date, data.time, data.isCancellation)

    if data.sendToAdmin:
        admin_result = sender.send_to_admin(data.name, data.date, data.time, data.isCancellation)
        if admin_result is not None and not admin_result.success:
            logger.warning('Admin copy of message failed: %s', admin_result.error)

    if not result.success:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=result.to_payload(),
        )
    return result.to_payload()
