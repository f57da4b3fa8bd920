"""
Models package initialization.
Import all models to ensure SQLAlchemy can resolve relationships.
"""
from psyhospital import db

# Import models in dependency order
from .user import User
from .ward import Ward
from .patient import Patient
from .medical_record import MedicalRecord
from .prescription import Prescription, PrescriptionExecution
from .discharge import Discharge
from .audit_log import AuditLog

__all__ = [
    'db',
    'User',
    'Ward',
    'Patient',
    'MedicalRecord',
    'Prescription',
    'PrescriptionExecution',
    'Discharge',
    'AuditLog',
]
