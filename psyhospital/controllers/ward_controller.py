from flask import request
from sqlalchemy import func

from psyhospital import db
from psyhospital.models.patient import Patient, STATUS_ACTIVE
from psyhospital.models.ward import Ward
from psyhospital.controllers.patient_controller import get_patient_or_404
from psyhospital.utils.audit import record_audit
from psyhospital.utils.error_handler import handle_errors, ConflictError, NotFoundError, ValidationError
from psyhospital.utils.response import success_response, list_response
from psyhospital.utils.serializers import patient_to_dict, ward_to_dict
from psyhospital.utils.session import ROLE_ADMIN, ROLE_DOCTOR, current_session
from psyhospital.utils.validation import validate_payload, TransferPayload


def _get_ward_or_404(ward_id: int) -> Ward:
    ward = db.session.get(Ward, ward_id)
    if not ward:
        raise NotFoundError(f'Ward {ward_id} not found')
    return ward


def department_stats():
    rows = db.session.execute(
        db.select(
            Ward.department,
            func.count(Ward.ward_id),
            func.sum(Ward.total_beds),
            func.sum(Ward.occupied_beds),
        ).group_by(Ward.department).order_by(Ward.department)
    ).all()

    stats = []
    for department, ward_count, total_beds, occupied_beds in rows:
        total_beds = int(total_beds or 0)
        occupied_beds = int(occupied_beds or 0)
        rate = occupied_beds / total_beds * 100 if total_beds else 0.0
        stats.append({
            'department': department,
            'ward_count': int(ward_count),
            'total_beds': total_beds,
            'occupied_beds': occupied_beds,
            'available_beds': total_beds - occupied_beds,
            'occupancy_rate': round(rate, 1),
        })
    return stats


@handle_errors('Fetch wards failed')
def list_wards():
    current_session()
    wards = Ward.query.order_by(Ward.ward_number).all()
    return list_response([ward_to_dict(w) for w in wards], message='Wards fetched')


@handle_errors('Fetch ward failed')
def get_ward(ward_id: int):
    current_session()
    return success_response(data=ward_to_dict(_get_ward_or_404(ward_id)), message='Ward fetched')


@handle_errors('Fetch ward patients failed')
def ward_patients(ward_id: int):
    current_session()
    _get_ward_or_404(ward_id)
    patients = (
        Patient.query
        .filter(Patient.ward_id == ward_id, Patient.status == STATUS_ACTIVE)
        .order_by(Patient.admission_date.desc())
        .all()
    )
    return list_response([patient_to_dict(p) for p in patients], message='Ward patients fetched')


@handle_errors('Fetch department statistics failed')
def list_department_stats():
    current_session()
    return list_response(department_stats(), message='Department statistics fetched')


@handle_errors('Transfer failed')
def transfer_patient():
    session = current_session().require(ROLE_DOCTOR, ROLE_ADMIN, message='Only doctors and administrators can transfer patients')
    data = validate_payload(TransferPayload, request.get_json() or {})

    patient = get_patient_or_404(data['patient_id'])
    if not patient.is_active:
        raise ConflictError('Discharged patients cannot be transferred')

    if patient.ward_id == data['new_ward_id']:
        raise ValidationError('Patient is already in this ward')

    new_ward = _get_ward_or_404(data['new_ward_id'])
    if new_ward.is_full:
        raise ConflictError(f'Ward {new_ward.ward_number} has no free beds')

    old_ward = patient.ward
    if old_ward:
        old_ward.release_bed()
    new_ward.occupy_bed()
    patient.ward = new_ward

    reason = (data.get('reason') or '').strip() or 'Not specified'
    record_audit(
        session,
        'TRANSFER_PATIENT',
        'Patient',
        patient.patient_id,
        f'Transfer from ward {old_ward.ward_number if old_ward else "-"} to ward {new_ward.ward_number}. Reason: {reason}',
    )
    db.session.commit()

    return success_response(
        data={
            'patient': patient_to_dict(patient),
            'from_ward': ward_to_dict(old_ward) if old_ward else None,
            'to_ward': ward_to_dict(new_ward),
        },
        message='Patient transferred',
    )
