from psyhospital import db
from sqlalchemy import func, select
from sqlalchemy.orm import column_property
from datetime import date, datetime, timedelta

from psyhospital.utils.schedule import STATUS_ACTIVE, execution_status, next_due_time

STATUS_COMPLETED = 'Completed'
STATUS_CANCELED = 'Canceled'
STATUSES = (STATUS_ACTIVE, STATUS_COMPLETED, STATUS_CANCELED)

TYPE_MEDICATION = 'Medication'
TYPE_PROCEDURE = 'Procedure'
TYPES = (TYPE_MEDICATION, TYPE_PROCEDURE)


class PrescriptionExecution(db.Model):
    """One administered dose or performed procedure. Rows are never updated."""

    __tablename__ = 'PrescriptionExecutions'

    execution_id = db.Column('ExecutionId', db.Integer, primary_key=True)
    prescription_id = db.Column('PrescriptionId', db.Integer, db.ForeignKey('Prescriptions.PrescriptionId'),
                                nullable=False)
    executed_by = db.Column('ExecutedBy', db.Integer, db.ForeignKey('Users.UserId'), nullable=False)
    execution_date = db.Column('ExecutionDate', db.DateTime, nullable=False)
    notes = db.Column('Notes', db.String(500))
    created_at = db.Column('CreatedAt', db.DateTime, nullable=False, default=datetime.now)

    prescription = db.relationship('Prescription', back_populates='executions')
    executor = db.relationship('User')


class Prescription(db.Model):
    __tablename__ = 'Prescriptions'

    prescription_id = db.Column('PrescriptionId', db.Integer, primary_key=True)
    patient_id = db.Column('PatientId', db.Integer, db.ForeignKey('Patients.PatientId'), nullable=False)
    doctor_id = db.Column('DoctorId', db.Integer, db.ForeignKey('Users.UserId'), nullable=False)
    prescription_type = db.Column('PrescriptionType', db.String(20), nullable=False)
    name = db.Column('Name', db.String(255), nullable=False)
    dosage = db.Column('Dosage', db.String(100))
    frequency = db.Column('Frequency', db.String(100), nullable=False)
    duration = db.Column('Duration', db.Integer, nullable=False)
    start_date = db.Column('StartDate', db.DateTime, nullable=False)
    end_date = db.Column('EndDate', db.DateTime, nullable=False)
    status = db.Column('Status', db.String(20), nullable=False, default=STATUS_ACTIVE)
    cancel_reason = db.Column('CancelReason', db.String(500))
    notes = db.Column('Notes', db.Text)
    created_at = db.Column('CreatedAt', db.DateTime, nullable=False, default=datetime.now)
    canceled_at = db.Column('CanceledAt', db.DateTime)
    canceled_by = db.Column('CanceledBy', db.Integer, db.ForeignKey('Users.UserId'))

    last_execution_time = column_property(
        select(func.max(PrescriptionExecution.execution_date))
        .where(PrescriptionExecution.prescription_id == prescription_id)
        .correlate_except(PrescriptionExecution)
        .scalar_subquery()
    )
    execution_count = column_property(
        select(func.count(PrescriptionExecution.execution_id))
        .where(PrescriptionExecution.prescription_id == prescription_id)
        .correlate_except(PrescriptionExecution)
        .scalar_subquery()
    )

    patient = db.relationship('Patient', back_populates='prescriptions')
    doctor = db.relationship('User', foreign_keys=[doctor_id])
    executions = db.relationship('PrescriptionExecution', back_populates='prescription',
                                 order_by='PrescriptionExecution.execution_date.desc()')

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE

    @property
    def full_name(self) -> str:
        if self.dosage and self.prescription_type == TYPE_MEDICATION:
            return f'{self.name} ({self.dosage})'
        return self.name

    @property
    def period_display(self) -> str:
        return f'{self.start_date:%d.%m.%Y} - {self.end_date:%d.%m.%Y}'

    def next_due_time(self, now: datetime | None = None):
        return next_due_time(self.status, self.frequency, self.last_execution_time, now or datetime.now())

    def execution_status(self, now: datetime | None = None):
        now = now or datetime.now()
        return execution_status(self.status, self.next_due_time(now), now)

    def days_left(self, today: date | None = None) -> int:
        if not self.is_active:
            return 0
        days = (self.end_date.date() - (today or date.today())).days
        return days if days > 0 else 0

    def append_note(self, text: str, separator: str = '\n'):
        self.notes = f'{self.notes}{separator}{text}' if self.notes else text


def end_date_for(start_date: datetime, duration_days: int) -> datetime:
    return start_date + timedelta(days=duration_days)
