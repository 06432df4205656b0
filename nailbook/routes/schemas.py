from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from nailbook.models.appointment import STATUS_BOOKED


class BookedByResponse(BaseModel):
    uid: str
    name: str
    phone: str

    class Config:
        from_attributes = True


class AppointmentResponse(BaseModel):
    id: int
    date: str
    time: str
    duration: int
    status: str
    booked_by: BookedByResponse | None = None
    booked_at: datetime | None = None
    created_at: datetime

    class Config:
        from_attributes = True

    @model_validator(mode='after')
    def check_booked_by_matches_status(self) -> 'AppointmentResponse':
        if (self.status == STATUS_BOOKED) != (self.booked_by is not None):
            raise ValueError('bookedBy must be present exactly when the appointment is booked.')
        return self


class WorkflowResponse(BaseModel):
    success: bool
    message: str
    appointment: AppointmentResponse
    user_notified: bool = Field(serialization_alias='userNotified')
    admin_notified: bool | None = Field(default=None, serialization_alias='adminNotified')
    is_not_opted_in: bool = Field(default=False, serialization_alias='isNotOptedIn')


def to_workflow_response(result) -> WorkflowResponse:
    return WorkflowResponse(
        success=result.success,
        message=result.message,
        appointment=AppointmentResponse.model_validate(result.appointment),
        user_notified=result.user_notified,
        admin_notified=result.admin_notified,
        is_not_opted_in=result.not_opted_in,
    )
