from psyhospital import db
from datetime import date, datetime

STATUS_ACTIVE = 'active'
STATUS_DISCHARGED = 'discharged'

CARD_PREFIX = 'MK'


class Patient(db.Model):
    __tablename__ = 'Patients'

    patient_id = db.Column('PatientId', db.Integer, primary_key=True)
    card_number = db.Column('CardNumber', db.String(20), unique=True, nullable=False)
    full_name = db.Column('FullName', db.String(255), nullable=False)
    birth_date = db.Column('BirthDate', db.Date, nullable=False)
    contact_info = db.Column('ContactInfo', db.String(255))
    admission_date = db.Column('AdmissionDate', db.DateTime, nullable=False, default=datetime.now)
    diagnosis = db.Column('Diagnosis', db.String(500))
    status = db.Column('Status', db.String(20), nullable=False, default=STATUS_ACTIVE)
    discharge_date = db.Column('DischargeDate', db.DateTime, nullable=True)
    ward_id = db.Column('WardId', db.Integer, db.ForeignKey('Wards.WardId'), nullable=True)

    # Relationships
    ward = db.relationship('Ward', back_populates='patients')
    records = db.relationship('MedicalRecord', back_populates='patient')
    prescriptions = db.relationship('Prescription', back_populates='patient')
    discharge = db.relationship('Discharge', back_populates='patient', uselist=False)

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE

    @property
    def ward_number(self) -> str:
        return self.ward.ward_number if self.ward else '-'

    @property
    def status_display(self) -> str:
        return 'In treatment' if self.is_active else 'Discharged'

    def age(self, today: date | None = None) -> int:
        return age_on(self.birth_date, today or date.today())


def age_on(birth_date: date, today: date) -> int:
    years = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        years -= 1
    return years


def normalize_card_query(term: str):
    """Return (latin, cyrillic) spellings of a card number fragment.

    Cards are printed as MK-2024-001 but staff often type the prefix on a
    Cyrillic keyboard layout.
    """
    latin = term.strip()
    for cyr, lat in (('М', 'M'), ('м', 'M'), ('К', 'K'), ('к', 'K')):
        latin = latin.replace(cyr, lat)
    cyrillic = latin.replace('M', 'М').replace('K', 'К')
    return latin, cyrillic


def next_card_number(existing: list[str], year: int) -> str:
    prefix = f'{CARD_PREFIX}-{year}-'
    last = 0
    for number in existing:
        if not number or not number.startswith(prefix):
            continue
        tail = number[-3:]
        if tail.isdigit():
            last = max(last, int(tail))
    return f'{prefix}{last + 1:03d}'
