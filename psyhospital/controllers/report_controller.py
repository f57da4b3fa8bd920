from datetime import date, datetime, time, timedelta

from flask import current_app, request, send_file
from sqlalchemy import func

from psyhospital import db
from psyhospital.models.patient import Patient, STATUS_ACTIVE, STATUS_DISCHARGED, age_on
from psyhospital.models.prescription import Prescription, STATUS_ACTIVE as PRESCRIPTION_ACTIVE
from psyhospital.models.ward import Ward, occupancy_status
from psyhospital.utils import pdf_reports
from psyhospital.utils.error_handler import handle_errors, NotFoundError
from psyhospital.utils.response import success_response, list_response
from psyhospital.utils.session import ROLE_ADMIN, ROLE_DOCTOR, current_session
from psyhospital.utils.validation import validate_payload, DateRangeQuery

NOT_SPECIFIED = 'Not specified'
REPORT_KINDS = ('current-patients', 'ward-occupancy', 'diagnoses')


def current_patients_report(now: datetime | None = None) -> list[dict]:
    now = now or datetime.now()
    patients = (
        Patient.query
        .filter(Patient.status == STATUS_ACTIVE)
        .order_by(Patient.admission_date.desc())
        .all()
    )
    rows = []
    for patient in patients:
        ward = patient.ward
        rows.append({
            'patient_id': patient.patient_id,
            'card_number': patient.card_number,
            'full_name': patient.full_name,
            'age': age_on(patient.birth_date, now.date()),
            'diagnosis': patient.diagnosis or '-',
            'admission_date': patient.admission_date,
            'ward_number': ward.ward_number if ward else 'Not assigned',
            'department': ward.department if ward else '-',
            'days_in_hospital': (now.date() - patient.admission_date.date()).days,
        })
    return rows


def ward_occupancy_report() -> list[dict]:
    wards = Ward.query.order_by(Ward.department, Ward.ward_number).all()
    rows = []
    for ward in wards:
        rate = ward.occupancy_rate
        status_text, status_color = occupancy_status(ward.available_beds, rate)
        rows.append({
            'ward_id': ward.ward_id,
            'department': ward.department,
            'ward_number': ward.ward_number,
            'total_beds': ward.total_beds,
            'occupied_beds': ward.occupied_beds,
            'available_beds': ward.available_beds,
            'occupancy_rate': round(rate, 1),
            'status': status_text,
            'status_color': status_color,
        })
    return rows


def diagnosis_statistics(date_from: date | None = None, date_to: date | None = None,
                         now: datetime | None = None) -> list[dict]:
    """Group patients admitted in the period by diagnosis.

    The average stay counts calendar days from admission to discharge, or to
    ``now`` for patients still in treatment.
    """
    now = now or datetime.now()
    query = Patient.query
    if date_from:
        query = query.filter(Patient.admission_date >= datetime.combine(date_from, time()))
    if date_to:
        query = query.filter(Patient.admission_date < datetime.combine(date_to + timedelta(days=1), time()))

    groups: dict[str, list[int]] = {}
    for patient in query.all():
        end = patient.discharge_date or now
        stay = (end.date() - patient.admission_date.date()).days
        groups.setdefault(patient.diagnosis or NOT_SPECIFIED, []).append(stay)

    rows = [
        {
            'diagnosis': diagnosis,
            'patient_count': len(stays),
            'average_duration': int(sum(stays) / len(stays)),
        }
        for diagnosis, stays in groups.items()
    ]
    rows.sort(key=lambda r: (-r['patient_count'], r['diagnosis']))
    return rows


def hospital_statistics() -> dict:
    current_patients = Patient.query.filter(Patient.status == STATUS_ACTIVE).count()
    total_discharged = Patient.query.filter(Patient.status == STATUS_DISCHARGED).count()
    total_beds, occupied_beds = db.session.execute(
        db.select(func.sum(Ward.total_beds), func.sum(Ward.occupied_beds))
    ).one()
    total_beds = int(total_beds or 0)
    occupied_beds = int(occupied_beds or 0)
    active_prescriptions = Prescription.query.filter(Prescription.status == PRESCRIPTION_ACTIVE).count()

    return {
        'current_patients': current_patients,
        'total_discharged': total_discharged,
        'total_beds': total_beds,
        'occupied_beds': occupied_beds,
        'available_beds': total_beds - occupied_beds,
        'occupancy_rate': round(occupied_beds / total_beds * 100, 1) if total_beds else 0.0,
        'active_prescriptions': active_prescriptions,
    }


def _serialize_rows(rows: list[dict]) -> list[dict]:
    serialized = []
    for row in rows:
        item = dict(row)
        if isinstance(item.get('admission_date'), datetime):
            item['admission_date'] = item['admission_date'].isoformat(timespec='minutes')
        serialized.append(item)
    return serialized


def _date_range():
    period = validate_payload(DateRangeQuery, request.args.to_dict())
    return period['date_from'], period['date_to']


@handle_errors('Current patients report failed')
def current_patients():
    current_session().require(ROLE_DOCTOR, ROLE_ADMIN)
    return list_response(_serialize_rows(current_patients_report()), message='Current patients report')


@handle_errors('Ward occupancy report failed')
def ward_occupancy():
    current_session().require(ROLE_DOCTOR, ROLE_ADMIN)
    return list_response(ward_occupancy_report(), message='Ward occupancy report')


@handle_errors('Diagnosis statistics failed')
def diagnoses():
    current_session().require(ROLE_DOCTOR, ROLE_ADMIN)
    date_from, date_to = _date_range()
    return list_response(diagnosis_statistics(date_from, date_to), message='Diagnosis statistics')


@handle_errors('Hospital statistics failed')
def statistics():
    current_session().require(ROLE_DOCTOR, ROLE_ADMIN)
    return success_response(data=hospital_statistics(), message='Hospital statistics')


@handle_errors('PDF report failed')
def report_pdf(kind: str):
    session = current_session().require(ROLE_DOCTOR, ROLE_ADMIN)
    if kind not in REPORT_KINDS:
        raise NotFoundError(f'Unknown report {kind}. Available: {", ".join(REPORT_KINDS)}')

    font_path = current_app.config.get('REPORT_FONT_PATH')
    if kind == 'current-patients':
        buffer = pdf_reports.current_patients_pdf(current_patients_report(), hospital_statistics(), font_path)
    elif kind == 'ward-occupancy':
        buffer = pdf_reports.ward_occupancy_pdf(ward_occupancy_report(), font_path)
    else:
        date_from, date_to = _date_range()
        buffer = pdf_reports.diagnosis_statistics_pdf(
            diagnosis_statistics(date_from, date_to), date_from, date_to, font_path
        )

    filename = f'report_{kind}_{datetime.now():%Y%m%d_%H%M%S}.pdf'
    current_app.logger.info('Report %s exported by %s', kind, session.username)
    return send_file(buffer, mimetype='application/pdf', as_attachment=True, download_name=filename)
