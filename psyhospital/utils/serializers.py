"""Row to JSON conversion, one function per entity."""
from datetime import date, datetime


def _dt(value):
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat(timespec='minutes')
    return value.isoformat()


def user_to_dict(user):
    return {
        'user_id': user.user_id,
        'username': user.username,
        'full_name': user.full_name,
        'role': user.role,
        'role_display': user.role_display,
        'is_active': user.is_active,
        'last_login': _dt(user.last_login),
    }


def ward_to_dict(ward):
    status_text, status_color = ward.status
    return {
        'ward_id': ward.ward_id,
        'ward_number': ward.ward_number,
        'department': ward.department,
        'total_beds': ward.total_beds,
        'occupied_beds': ward.occupied_beds,
        'available_beds': ward.available_beds,
        'occupancy_rate': round(ward.occupancy_rate, 1),
        'status': status_text,
        'status_color': status_color,
    }


def patient_to_dict(patient, today: date | None = None):
    return {
        'patient_id': patient.patient_id,
        'card_number': patient.card_number,
        'full_name': patient.full_name,
        'birth_date': _dt(patient.birth_date),
        'age': patient.age(today),
        'contact_info': patient.contact_info,
        'admission_date': _dt(patient.admission_date),
        'diagnosis': patient.diagnosis,
        'status': patient.status,
        'status_display': patient.status_display,
        'discharge_date': _dt(patient.discharge_date),
        'ward_id': patient.ward_id,
        'ward_number': patient.ward_number,
    }


def discharge_to_dict(discharge):
    return {
        'discharge_id': discharge.discharge_id,
        'patient_id': discharge.patient_id,
        'discharge_date': _dt(discharge.discharge_date),
        'reason': discharge.reason,
        'final_diagnosis': discharge.final_diagnosis,
        'discharged_by': discharge.discharged_by,
        'doctor_name': discharge.doctor.full_name if discharge.doctor else None,
    }


def record_to_dict(record):
    return {
        'record_id': record.record_id,
        'patient_id': record.patient_id,
        'patient_name': record.patient.full_name if record.patient else None,
        'doctor_id': record.doctor_id,
        'doctor_name': record.doctor.full_name if record.doctor else None,
        'record_date': _dt(record.record_date),
        'record_type': record.record_type,
        'record_type_display': record.record_type_display,
        'description': record.description,
        'created_at': _dt(record.created_at),
    }


def prescription_to_dict(prescription, now: datetime | None = None):
    now = now or datetime.now()
    return {
        'prescription_id': prescription.prescription_id,
        'patient_id': prescription.patient_id,
        'patient_name': prescription.patient.full_name if prescription.patient else None,
        'doctor_id': prescription.doctor_id,
        'doctor_name': prescription.doctor.full_name if prescription.doctor else 'Unknown',
        'prescription_type': prescription.prescription_type,
        'name': prescription.name,
        'full_name': prescription.full_name,
        'dosage': prescription.dosage,
        'frequency': prescription.frequency,
        'duration': prescription.duration,
        'start_date': _dt(prescription.start_date),
        'end_date': _dt(prescription.end_date),
        'period': prescription.period_display,
        'days_left': prescription.days_left(now.date()),
        'status': prescription.status,
        'cancel_reason': prescription.cancel_reason,
        'canceled_at': _dt(prescription.canceled_at),
        'canceled_by': prescription.canceled_by,
        'notes': prescription.notes,
        'created_at': _dt(prescription.created_at),
        'execution_count': prescription.execution_count or 0,
        'last_execution_time': _dt(prescription.last_execution_time),
        'next_due_time': _dt(prescription.next_due_time(now)),
        'execution_status': prescription.execution_status(now).to_dict(),
    }


def execution_to_dict(execution):
    return {
        'execution_id': execution.execution_id,
        'prescription_id': execution.prescription_id,
        'prescription_name': execution.prescription.name if execution.prescription else None,
        'executed_by': execution.executed_by,
        'executed_by_name': execution.executor.full_name if execution.executor else None,
        'execution_date': _dt(execution.execution_date),
        'notes': execution.notes,
        'created_at': _dt(execution.created_at),
    }


def audit_to_dict(entry):
    return {
        'log_id': entry.log_id,
        'user_id': entry.user_id,
        'username': entry.user.username if entry.user else None,
        'action': entry.action,
        'entity_type': entry.entity_type,
        'entity_id': entry.entity_id,
        'details': entry.details,
        'created_at': _dt(entry.created_at),
    }
