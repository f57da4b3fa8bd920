from datetime import date, datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, model_validator


def _to_local_naive(value: datetime) -> datetime:
    # wall-clock times are stored without zone, as the ward schedule is local
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


LocalDatetime = Annotated[datetime, AfterValidator(_to_local_naive)]


def validate_payload(model_cls, payload: dict):
    return model_cls.model_validate(payload).model_dump()


class LoginPayload(BaseModel):
    model_config = ConfigDict(extra='forbid')

    username: str
    password: str


class CreatePatientPayload(BaseModel):
    model_config = ConfigDict(extra='forbid')

    full_name: str
    birth_date: date
    contact_info: str | None = None
    admission_date: LocalDatetime | None = None
    diagnosis: str | None = None
    ward_id: int | None = None


class UpdatePatientPayload(BaseModel):
    model_config = ConfigDict(extra='forbid')

    full_name: str | None = None
    birth_date: date | None = None
    contact_info: str | None = None
    diagnosis: str | None = None
    ward_id: int | None = None


class DischargePayload(BaseModel):
    model_config = ConfigDict(extra='forbid')

    discharge_date: LocalDatetime | None = None
    reason: str
    final_diagnosis: str


class TransferPayload(BaseModel):
    model_config = ConfigDict(extra='forbid')

    patient_id: int
    new_ward_id: int
    reason: str | None = None


class MedicalRecordPayload(BaseModel):
    model_config = ConfigDict(extra='forbid')

    patient_id: int
    description: str
    record_type: str | None = None
    record_date: LocalDatetime | None = None


class CreatePrescriptionPayload(BaseModel):
    model_config = ConfigDict(extra='forbid')

    patient_id: int
    prescription_type: str
    name: str
    dosage: str | None = None
    frequency: str
    duration: int
    start_date: LocalDatetime | None = None
    notes: str | None = None


class ExecutePrescriptionPayload(BaseModel):
    model_config = ConfigDict(extra='forbid')

    execution_date: LocalDatetime | None = None
    notes: str | None = None


class ExtendPrescriptionPayload(BaseModel):
    model_config = ConfigDict(extra='forbid')

    days: int
    notes: str | None = None


class ReasonPayload(BaseModel):
    model_config = ConfigDict(extra='forbid')

    reason: str


class DateRangeQuery(BaseModel):
    model_config = ConfigDict(extra='ignore')

    date_from: date | None = None
    date_to: date | None = None

    @model_validator(mode='after')
    def check_order(self):
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValueError('date_from must not be after date_to')
        return self
