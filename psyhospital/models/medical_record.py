from psyhospital import db
from datetime import datetime

RECORD_TYPES = {
    'examination': 'Examination',
    'consultation': 'Consultation',
    'state_change': 'State change',
    'tests': 'Tests',
}


class MedicalRecord(db.Model):
    __tablename__ = 'MedicalRecords'

    record_id = db.Column('RecordId', db.Integer, primary_key=True)
    patient_id = db.Column('PatientId', db.Integer, db.ForeignKey('Patients.PatientId'), nullable=False)
    doctor_id = db.Column('DoctorId', db.Integer, db.ForeignKey('Users.UserId'), nullable=False)
    record_date = db.Column('RecordDate', db.DateTime, nullable=False)
    description = db.Column('Description', db.Text, nullable=False)
    record_type = db.Column('RecordType', db.String(50))
    created_at = db.Column('CreatedAt', db.DateTime, nullable=False, default=datetime.now)

    patient = db.relationship('Patient', back_populates='records')
    doctor = db.relationship('User')

    @property
    def record_type_display(self) -> str:
        return RECORD_TYPES.get(self.record_type or '', 'Record')
