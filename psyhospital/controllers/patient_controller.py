from datetime import datetime

from flask import request
from sqlalchemy import or_

from psyhospital import db
from psyhospital.models.discharge import Discharge
from psyhospital.models.patient import (
    Patient,
    STATUS_ACTIVE,
    STATUS_DISCHARGED,
    next_card_number,
    normalize_card_query,
)
from psyhospital.models.ward import Ward
from psyhospital.utils.audit import record_audit
from psyhospital.utils.error_handler import handle_errors, ConflictError, NotFoundError, ValidationError
from psyhospital.utils.response import success_response, list_response
from psyhospital.utils.serializers import patient_to_dict, discharge_to_dict
from psyhospital.utils.session import ROLE_ADMIN, ROLE_DOCTOR, current_session
from psyhospital.utils.validation import (
    validate_payload,
    CreatePatientPayload,
    UpdatePatientPayload,
    DischargePayload,
)

MIN_DIAGNOSIS_LENGTH = 10
PATIENT_STATUSES = (STATUS_ACTIVE, STATUS_DISCHARGED)


def get_patient_or_404(patient_id: int) -> Patient:
    patient = db.session.get(Patient, patient_id)
    if not patient:
        raise NotFoundError(f'Patient {patient_id} not found')
    return patient


def _get_ward_or_400(ward_id: int) -> Ward:
    ward = db.session.get(Ward, ward_id)
    if not ward:
        raise ValidationError(f'Ward with id {ward_id} does not exist')
    return ward


def _check_status_filter(status: str | None):
    if status and status not in PATIENT_STATUSES:
        raise ValidationError(f'Invalid status. Allowed: {", ".join(PATIENT_STATUSES)}')


def _generate_card_number(year: int) -> str:
    rows = db.session.execute(
        db.select(Patient.card_number).where(Patient.card_number.like(f'MK-{year}-%'))
    ).scalars().all()
    return next_card_number(rows, year)


def _base_query():
    return Patient.query.outerjoin(Ward, Patient.ward_id == Ward.ward_id)


def _ordered(query):
    return query.order_by(Patient.admission_date.desc(), Patient.patient_id.desc())


@handle_errors('Fetch patients failed')
def list_patients():
    current_session()
    status = (request.args.get('status') or '').strip() or None
    _check_status_filter(status)

    query = _base_query()
    if status:
        query = query.filter(Patient.status == status)
    patients = _ordered(query).all()
    return list_response([patient_to_dict(p) for p in patients], message='Patients fetched')


@handle_errors('Fetch patient failed')
def get_patient(patient_id: int):
    current_session()
    patient = get_patient_or_404(patient_id)
    return success_response(data=patient_to_dict(patient), message='Patient fetched')


@handle_errors('Search failed')
def search_patients():
    current_session()
    term = (request.args.get('q') or '').strip()
    if not term:
        raise ValidationError('q is required')

    latin, cyrillic = normalize_card_query(term)
    patients = _ordered(
        _base_query().filter(
            or_(
                Patient.full_name.ilike(f'%{term}%'),
                Patient.card_number.like(f'%{latin}%'),
                Patient.card_number.like(f'%{cyrillic}%'),
            )
        )
    ).all()
    return list_response([patient_to_dict(p) for p in patients], message='Search completed')


@handle_errors('Advanced search failed')
def advanced_search():
    current_session()
    args = request.args
    full_name = (args.get('full_name') or '').strip()
    card_number = (args.get('card_number') or '').strip()
    ward_number = (args.get('ward_number') or '').strip()
    status = (args.get('status') or '').strip()
    _check_status_filter(status)

    query = _base_query()
    if full_name:
        query = query.filter(Patient.full_name.ilike(f'%{full_name}%'))
    if card_number:
        latin, cyrillic = normalize_card_query(card_number)
        query = query.filter(or_(Patient.card_number.like(f'%{latin}%'), Patient.card_number.like(f'%{cyrillic}%')))
    if ward_number:
        query = query.filter(Ward.ward_number == ward_number)
    if status:
        query = query.filter(Patient.status == status)

    patients = _ordered(query).all()
    return list_response([patient_to_dict(p) for p in patients], message='Search completed')


@handle_errors('Create patient failed')
def create_patient():
    session = current_session().require(ROLE_DOCTOR, ROLE_ADMIN, message='Only doctors and administrators can admit patients')
    data = validate_payload(CreatePatientPayload, request.get_json() or {})

    full_name = data['full_name'].strip()
    if not full_name:
        raise ValidationError('full_name is required', details={'fields': ['full_name']})

    now = datetime.now()
    if data['birth_date'] > now.date():
        raise ValidationError('birth_date cannot be in the future')

    ward = None
    if data.get('ward_id') is not None:
        ward = _get_ward_or_400(data['ward_id'])
        if ward.is_full:
            raise ConflictError(f'Ward {ward.ward_number} has no free beds')

    admission_date = data.get('admission_date') or now
    patient = Patient(
        card_number=_generate_card_number(admission_date.year),
        full_name=full_name,
        birth_date=data['birth_date'],
        contact_info=data.get('contact_info'),
        admission_date=admission_date,
        diagnosis=data.get('diagnosis'),
        status=STATUS_ACTIVE,
        ward=ward,
    )
    if ward:
        ward.occupy_bed()
    db.session.add(patient)
    db.session.flush()

    record_audit(session, 'CREATE_PATIENT', 'Patient', patient.patient_id, f'Patient admitted: {patient.full_name}')
    db.session.commit()

    return success_response(data=patient_to_dict(patient), message='Patient admitted', status_code=201)


@handle_errors('Update patient failed')
def update_patient(patient_id: int):
    session = current_session().require(ROLE_DOCTOR, ROLE_ADMIN, message='Only doctors and administrators can edit patients')
    raw = request.get_json() or {}
    data = validate_payload(UpdatePatientPayload, raw)

    patient = get_patient_or_404(patient_id)
    if not patient.is_active:
        raise ConflictError('Discharged patients cannot be edited')

    if 'full_name' in raw:
        full_name = (data.get('full_name') or '').strip()
        if not full_name:
            raise ValidationError('full_name cannot be empty', details={'fields': ['full_name']})
        patient.full_name = full_name
    if data.get('birth_date'):
        if data['birth_date'] > datetime.now().date():
            raise ValidationError('birth_date cannot be in the future')
        patient.birth_date = data['birth_date']
    for field in ('contact_info', 'diagnosis'):
        if field in raw:
            setattr(patient, field, data.get(field))

    if 'ward_id' in raw and data.get('ward_id') != patient.ward_id:
        new_ward = _get_ward_or_400(data['ward_id']) if data.get('ward_id') is not None else None
        if new_ward and new_ward.is_full:
            raise ConflictError(f'Ward {new_ward.ward_number} has no free beds')
        if patient.ward:
            patient.ward.release_bed()
        if new_ward:
            new_ward.occupy_bed()
        patient.ward = new_ward

    record_audit(session, 'UPDATE_PATIENT', 'Patient', patient.patient_id, f'Patient updated: {patient.full_name}')
    db.session.commit()

    return success_response(data=patient_to_dict(patient), message='Patient updated')


@handle_errors('Discharge failed')
def discharge_patient(patient_id: int):
    session = current_session().require(ROLE_DOCTOR, message='Only a doctor can discharge a patient')
    data = validate_payload(DischargePayload, request.get_json() or {})

    patient = get_patient_or_404(patient_id)
    if patient.status == STATUS_DISCHARGED:
        raise ConflictError('Patient is already discharged')

    now = datetime.now()
    discharge_date = data.get('discharge_date') or now
    if discharge_date > now:
        raise ValidationError('discharge_date cannot be in the future')

    reason = data['reason'].strip()
    if not reason:
        raise ValidationError('reason is required', details={'fields': ['reason']})

    final_diagnosis = data['final_diagnosis'].strip()
    if len(final_diagnosis) < MIN_DIAGNOSIS_LENGTH:
        raise ValidationError(
            f'final_diagnosis is too short (minimum {MIN_DIAGNOSIS_LENGTH} characters)',
            details={'fields': ['final_diagnosis']},
        )

    # 1) Patient leaves the ward
    if patient.ward:
        patient.ward.release_bed()
    patient.ward = None
    patient.status = STATUS_DISCHARGED
    patient.discharge_date = discharge_date

    # 2) Discharge record
    db.session.add(Discharge(
        patient_id=patient.patient_id,
        discharge_date=discharge_date,
        reason=reason,
        final_diagnosis=final_diagnosis,
        discharged_by=session.user_id,
    ))

    # 3) Audit
    record_audit(session, 'DISCHARGE_PATIENT', 'Patient', patient.patient_id,
                 f'Patient: {patient.full_name}, reason: {reason}')
    db.session.commit()

    return success_response(data=patient_to_dict(patient), message='Patient discharged')


@handle_errors('Fetch discharge failed')
def get_discharge(patient_id: int):
    current_session()
    patient = get_patient_or_404(patient_id)
    if not patient.discharge:
        raise NotFoundError(f'Patient {patient_id} has no discharge record')
    return success_response(data=discharge_to_dict(patient.discharge), message='Discharge fetched')
