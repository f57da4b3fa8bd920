from datetime import datetime, time, timedelta

from flask import request

from psyhospital import db
from psyhospital.models.medical_record import MedicalRecord, RECORD_TYPES
from psyhospital.controllers.patient_controller import get_patient_or_404
from psyhospital.utils.audit import record_audit
from psyhospital.utils.error_handler import handle_errors, NotFoundError, ValidationError
from psyhospital.utils.response import success_response, list_response
from psyhospital.utils.serializers import record_to_dict
from psyhospital.utils.session import ROLE_DOCTOR, current_session
from psyhospital.utils.validation import validate_payload, DateRangeQuery, MedicalRecordPayload

MIN_DESCRIPTION_LENGTH = 10


def _check_record_type(record_type: str | None):
    if record_type and record_type not in RECORD_TYPES:
        raise ValidationError(f'Invalid record_type. Allowed: {", ".join(RECORD_TYPES)}')


@handle_errors('Fetch records failed')
def patient_records(patient_id: int):
    current_session()
    get_patient_or_404(patient_id)

    period = validate_payload(DateRangeQuery, request.args.to_dict())
    record_type = (request.args.get('record_type') or '').strip() or None
    term = (request.args.get('q') or '').strip()
    _check_record_type(record_type)

    query = MedicalRecord.query.filter(MedicalRecord.patient_id == patient_id)
    if period['date_from']:
        query = query.filter(MedicalRecord.record_date >= datetime.combine(period['date_from'], time()))
    if period['date_to']:
        # inclusive of the whole last day
        query = query.filter(MedicalRecord.record_date < datetime.combine(period['date_to'] + timedelta(days=1), time()))
    if record_type:
        query = query.filter(MedicalRecord.record_type == record_type)
    if term:
        query = query.filter(MedicalRecord.description.ilike(f'%{term}%'))

    records = query.order_by(MedicalRecord.record_date.desc(), MedicalRecord.record_id.desc()).all()
    return list_response([record_to_dict(r) for r in records], message='Records fetched')


@handle_errors('Fetch record failed')
def get_record(record_id: int):
    current_session()
    record = db.session.get(MedicalRecord, record_id)
    if not record:
        raise NotFoundError(f'Record {record_id} not found')
    return success_response(data=record_to_dict(record), message='Record fetched')


@handle_errors('Add record failed')
def add_record():
    session = current_session().require(ROLE_DOCTOR, message='Only doctors can add medical records')
    data = validate_payload(MedicalRecordPayload, request.get_json() or {})

    patient = get_patient_or_404(data['patient_id'])

    description = data['description'].strip()
    if len(description) < MIN_DESCRIPTION_LENGTH:
        raise ValidationError(
            f'description is too short (minimum {MIN_DESCRIPTION_LENGTH} characters)',
            details={'fields': ['description']},
        )

    record_type = (data.get('record_type') or '').strip() or None
    _check_record_type(record_type)

    now = datetime.now()
    record_date = data.get('record_date') or now
    if record_date > now:
        raise ValidationError('record_date cannot be in the future')

    record = MedicalRecord(
        patient_id=patient.patient_id,
        doctor_id=session.user_id,
        record_date=record_date,
        description=description,
        record_type=record_type,
    )
    db.session.add(record)
    db.session.flush()

    record_audit(session, 'ADD_MEDICAL_RECORD', 'MedicalRecord', record.record_id,
                 f'Record ({record_type or "untyped"}) added for patient {patient.patient_id}')
    db.session.commit()

    return success_response(data=record_to_dict(record), message='Record added', status_code=201)
