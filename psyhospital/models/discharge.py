from psyhospital import db
from datetime import datetime


class Discharge(db.Model):
    __tablename__ = 'Discharges'

    discharge_id = db.Column('DischargeId', db.Integer, primary_key=True)
    patient_id = db.Column('PatientId', db.Integer, db.ForeignKey('Patients.PatientId'), nullable=False)
    discharge_date = db.Column('DischargeDate', db.DateTime, nullable=False)
    reason = db.Column('Reason', db.String(255), nullable=False)
    final_diagnosis = db.Column('FinalDiagnosis', db.String(500), nullable=False)
    discharged_by = db.Column('DischargedBy', db.Integer, db.ForeignKey('Users.UserId'), nullable=False)
    created_at = db.Column('CreatedAt', db.DateTime, nullable=False, default=datetime.now)

    patient = db.relationship('Patient', back_populates='discharge')
    doctor = db.relationship('User')
