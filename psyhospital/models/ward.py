from psyhospital import db


class Ward(db.Model):
    __tablename__ = 'Wards'

    ward_id = db.Column('WardId', db.Integer, primary_key=True)
    ward_number = db.Column('WardNumber', db.String(20), unique=True, nullable=False)
    department = db.Column('Department', db.String(100), nullable=False)
    total_beds = db.Column('TotalBeds', db.Integer, nullable=False)
    occupied_beds = db.Column('OccupiedBeds', db.Integer, nullable=False, default=0)

    patients = db.relationship('Patient', back_populates='ward')

    @property
    def available_beds(self) -> int:
        return self.total_beds - self.occupied_beds

    @property
    def is_full(self) -> bool:
        return self.occupied_beds >= self.total_beds

    @property
    def occupancy_rate(self) -> float:
        if not self.total_beds:
            return 0.0
        return self.occupied_beds / self.total_beds * 100

    def occupy_bed(self):
        self.occupied_beds = (self.occupied_beds or 0) + 1

    def release_bed(self):
        if self.occupied_beds:
            self.occupied_beds -= 1

    @property
    def status(self):
        return occupancy_status(self.available_beds, self.occupancy_rate)


def occupancy_status(available_beds: int, occupancy_rate: float):
    """Return (text, color) for a bed count, shared by wards and reports."""
    if available_beds <= 0:
        return 'Full', '#F44336'
    if occupancy_rate >= 80:
        return 'Almost full', '#FF9800'
    if occupancy_rate >= 50:
        return 'Half full', '#FFC107'
    return 'Beds available', '#4CAF50'
