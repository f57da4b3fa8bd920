from datetime import datetime, timedelta

from flask import current_app, request

from psyhospital import db
from psyhospital.models.prescription import (
    Prescription,
    PrescriptionExecution,
    STATUS_ACTIVE,
    STATUS_CANCELED,
    STATUS_COMPLETED,
    TYPE_MEDICATION,
    TYPES,
    end_date_for,
)
from psyhospital.controllers.patient_controller import get_patient_or_404
from psyhospital.utils.audit import record_audit
from psyhospital.utils.error_handler import handle_errors, ConflictError, ForbiddenError, NotFoundError, ValidationError
from psyhospital.utils.response import success_response, list_response
from psyhospital.utils.schedule import DAILY_SCHEDULES, is_known_frequency
from psyhospital.utils.serializers import execution_to_dict, prescription_to_dict
from psyhospital.utils.session import ROLE_ADMIN, ROLE_DOCTOR, ROLE_NURSE, UserSession, current_session
from psyhospital.utils.validation import (
    validate_payload,
    CreatePrescriptionPayload,
    ExecutePrescriptionPayload,
    ExtendPrescriptionPayload,
    ReasonPayload,
)

MIN_CANCEL_REASON_LENGTH = 10
EXPIRING_WINDOW = timedelta(days=3)


def _get_prescription_or_404(prescription_id: int) -> Prescription:
    prescription = db.session.get(Prescription, prescription_id)
    if not prescription:
        raise NotFoundError(f'Prescription {prescription_id} not found')
    return prescription


def _require_active(prescription: Prescription, action: str):
    if prescription.status != STATUS_ACTIVE:
        raise ConflictError(
            f'Cannot {action}: prescription is {prescription.status.lower()}',
            details={'status': prescription.status},
        )


def _is_truthy(value: str | None) -> bool:
    return (value or '').strip().lower() in ('1', 'true', 'yes')


@handle_errors('Create prescription failed')
def create_prescription():
    session = current_session().require(ROLE_DOCTOR, message='Only doctors can create prescriptions')
    data = validate_payload(CreatePrescriptionPayload, request.get_json() or {})

    prescription_type = data['prescription_type'].strip()
    if prescription_type not in TYPES:
        raise ValidationError(f'Invalid prescription_type. Allowed: {", ".join(TYPES)}')

    name = data['name'].strip()
    if not name:
        raise ValidationError('name is required', details={'fields': ['name']})

    dosage = (data.get('dosage') or '').strip() or None
    if prescription_type == TYPE_MEDICATION and not dosage:
        raise ValidationError('dosage is required for medication', details={'fields': ['dosage']})

    frequency = data['frequency'].strip()
    if not is_known_frequency(frequency):
        raise ValidationError(
            'Unknown frequency',
            details={'allowed': list(DAILY_SCHEDULES)},
        )

    if data['duration'] <= 0:
        raise ValidationError('duration must be greater than 0', details={'fields': ['duration']})

    patient = get_patient_or_404(data['patient_id'])
    if not patient.is_active:
        raise ConflictError('Cannot prescribe for a discharged patient')

    start_date = data.get('start_date') or datetime.now().replace(hour=0, minute=0, second=0, microsecond=0)
    prescription = Prescription(
        patient_id=patient.patient_id,
        doctor_id=session.user_id,
        prescription_type=prescription_type,
        name=name,
        dosage=dosage,
        frequency=frequency,
        duration=data['duration'],
        start_date=start_date,
        end_date=end_date_for(start_date, data['duration']),
        status=STATUS_ACTIVE,
        notes=(data.get('notes') or '').strip() or None,
    )
    db.session.add(prescription)
    db.session.flush()

    record_audit(session, 'CREATE_PRESCRIPTION', 'Prescription', prescription.prescription_id,
                 f'Prescription created: {name} for patient {patient.patient_id}')
    db.session.commit()

    return success_response(data=prescription_to_dict(prescription), message='Prescription created', status_code=201)


@handle_errors('Fetch prescriptions failed')
def patient_prescriptions(patient_id: int):
    current_session()
    get_patient_or_404(patient_id)

    query = Prescription.query.filter(Prescription.patient_id == patient_id)
    if _is_truthy(request.args.get('active_only')):
        query = query.filter(Prescription.status == STATUS_ACTIVE)
    prescriptions = query.order_by(Prescription.start_date.desc(), Prescription.created_at.desc()).all()

    now = datetime.now()
    return list_response([prescription_to_dict(p, now) for p in prescriptions], message='Prescriptions fetched')


@handle_errors('Fetch prescription failed')
def get_prescription(prescription_id: int):
    current_session()
    prescription = _get_prescription_or_404(prescription_id)
    return success_response(data=prescription_to_dict(prescription), message='Prescription fetched')


@handle_errors('Fetch expiring prescriptions failed')
def expiring_prescriptions():
    session = current_session().require(ROLE_DOCTOR, message='Only doctors have expiring prescriptions')
    now = datetime.now()
    prescriptions = (
        Prescription.query
        .filter(
            Prescription.doctor_id == session.user_id,
            Prescription.status == STATUS_ACTIVE,
            Prescription.end_date <= now + EXPIRING_WINDOW,
        )
        .order_by(Prescription.end_date.asc())
        .all()
    )
    return list_response([prescription_to_dict(p, now) for p in prescriptions], message='Expiring prescriptions fetched')


@handle_errors('Execute prescription failed')
def execute_prescription(prescription_id: int):
    session = current_session().require(ROLE_DOCTOR, ROLE_NURSE, message='Only doctors and nurses can record executions')
    data = validate_payload(ExecutePrescriptionPayload, request.get_json() or {})

    prescription = _get_prescription_or_404(prescription_id)
    _require_active(prescription, 'record execution')

    now = datetime.now()
    execution_date = data.get('execution_date') or now
    if execution_date > now:
        raise ValidationError('execution_date cannot be in the future')

    execution = PrescriptionExecution(
        prescription_id=prescription.prescription_id,
        executed_by=session.user_id,
        execution_date=execution_date,
        notes=(data.get('notes') or '').strip() or None,
    )
    db.session.add(execution)
    db.session.flush()

    record_audit(session, 'EXECUTE_PRESCRIPTION', 'PrescriptionExecution', execution.execution_id,
                 f'Prescription {prescription.prescription_id} executed at {execution_date:%d.%m.%Y %H:%M}')
    db.session.commit()

    return success_response(
        data={'execution': execution_to_dict(execution), 'prescription': prescription_to_dict(prescription)},
        message='Execution recorded',
        status_code=201,
    )


@handle_errors('Fetch executions failed')
def prescription_executions(prescription_id: int):
    current_session()
    prescription = _get_prescription_or_404(prescription_id)
    return list_response([execution_to_dict(e) for e in prescription.executions], message='Executions fetched')


@handle_errors('Extend prescription failed')
def extend_prescription(prescription_id: int):
    session = current_session().require(ROLE_DOCTOR, message='Only doctors can extend prescriptions')
    data = validate_payload(ExtendPrescriptionPayload, request.get_json() or {})

    days = data['days']
    if days <= 0:
        raise ValidationError('days must be greater than 0', details={'fields': ['days']})

    prescription = _get_prescription_or_404(prescription_id)
    _require_active(prescription, 'extend')

    notes = (data.get('notes') or '').strip() or 'course extension'
    prescription.end_date = prescription.end_date + timedelta(days=days)
    prescription.duration = prescription.duration + days
    prescription.append_note(f'Extended by {days} d. {datetime.now():%d.%m.%Y %H:%M}: {notes}')

    record_audit(session, 'EXTEND_PRESCRIPTION', 'Prescription', prescription.prescription_id,
                 f'Extended by {days} days. {notes}')
    db.session.commit()

    return success_response(data=prescription_to_dict(prescription), message='Prescription extended')


@handle_errors('Cancel prescription failed')
def cancel_prescription(prescription_id: int):
    session = current_session().require(ROLE_DOCTOR, message='Only doctors can cancel prescriptions')
    data = validate_payload(ReasonPayload, request.get_json() or {})

    reason = data['reason'].strip()
    if not reason:
        raise ValidationError('reason is required', details={'fields': ['reason']})
    if len(reason) < MIN_CANCEL_REASON_LENGTH:
        raise ValidationError(
            f'reason is too short (minimum {MIN_CANCEL_REASON_LENGTH} characters)',
            details={'fields': ['reason']},
        )

    prescription = _get_prescription_or_404(prescription_id)
    if prescription.doctor_id != session.user_id:
        raise ForbiddenError('Only the doctor who created the prescription can cancel it')
    if prescription.status == STATUS_CANCELED:
        raise ConflictError('Prescription is already canceled')
    if prescription.status == STATUS_COMPLETED:
        raise ConflictError('A completed prescription cannot be canceled')
    if prescription.execution_count:
        raise ConflictError(
            'Cannot cancel a prescription that has executions. Complete it early instead.',
            details={'execution_count': prescription.execution_count},
        )

    prescription.status = STATUS_CANCELED
    prescription.cancel_reason = reason
    prescription.canceled_at = datetime.now()
    prescription.canceled_by = session.user_id

    record_audit(session, 'CANCEL_PRESCRIPTION', 'Prescription', prescription.prescription_id,
                 f'Canceled. Reason: {reason}')
    db.session.commit()

    return success_response(data=prescription_to_dict(prescription), message='Prescription canceled')


@handle_errors('Complete prescription failed')
def complete_prescription(prescription_id: int):
    session = current_session().require(ROLE_DOCTOR, message='Only doctors can complete prescriptions early')
    data = validate_payload(ReasonPayload, request.get_json() or {})

    reason = data['reason'].strip()
    if not reason:
        raise ValidationError('reason is required', details={'fields': ['reason']})

    prescription = _get_prescription_or_404(prescription_id)
    _require_active(prescription, 'complete')

    prescription.status = STATUS_COMPLETED
    prescription.end_date = datetime.now()
    prescription.append_note(f'Completed early: {reason}', separator=' ')

    record_audit(session, 'COMPLETE_PRESCRIPTION', 'Prescription', prescription.prescription_id,
                 f'Completed early. Reason: {reason}')
    db.session.commit()

    return success_response(data=prescription_to_dict(prescription), message='Prescription completed')


def complete_expired(session: UserSession, now: datetime | None = None) -> list[int]:
    """Close every active course whose end date has passed. Caller commits."""
    now = now or datetime.now()
    expired = (
        Prescription.query
        .filter(Prescription.status == STATUS_ACTIVE, Prescription.end_date < now)
        .all()
    )
    for prescription in expired:
        prescription.status = STATUS_COMPLETED
        prescription.append_note(f'Course finished {now:%d.%m.%Y}', separator=' ')
        record_audit(session, 'COMPLETE_EXPIRED_PRESCRIPTION', 'Prescription', prescription.prescription_id,
                     f'Course ended on {prescription.end_date:%d.%m.%Y}')
    return [p.prescription_id for p in expired]


@handle_errors('Complete expired prescriptions failed')
def complete_expired_prescriptions():
    session = current_session().require(ROLE_DOCTOR, ROLE_ADMIN)
    completed = complete_expired(session)
    db.session.commit()
    current_app.logger.info('Completed %d expired prescriptions', len(completed))
    return success_response(
        data={'completed': completed},
        message=f'{len(completed)} prescriptions completed',
        count=len(completed),
    )
