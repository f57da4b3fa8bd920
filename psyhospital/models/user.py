from psyhospital import db
import bcrypt
import hashlib
import hmac
from datetime import datetime

ROLE_DISPLAY_NAMES = {
    'doctor': 'Doctor',
    'nurse': 'Nurse',
    'admin': 'Administrator',
}


class User(db.Model):
    __tablename__ = 'Users'

    user_id = db.Column('UserId', db.Integer, primary_key=True)
    username = db.Column('Username', db.String(50), unique=True, nullable=False)
    password_hash = db.Column('PasswordHash', db.String(255), nullable=False)
    full_name = db.Column('FullName', db.String(255), nullable=False)
    role = db.Column('Role', db.String(20), nullable=False)
    is_active = db.Column('IsActive', db.Boolean, nullable=False, default=True)
    last_login = db.Column('LastLogin', db.DateTime, nullable=True)

    def set_password(self, raw_password: str):
        """Hash and store password. bcrypt has a 72-byte limit."""
        raw = raw_password.encode('utf-8')[:72]
        self.password_hash = bcrypt.hashpw(raw, bcrypt.gensalt()).decode('utf-8')

    def verify_password(self, raw_password: str) -> bool:
        """
        Check password. Accounts migrated from the desktop system still carry
        an upper-case SHA-256 hex digest; those are compared directly.
        """
        if not self.password_hash:
            return False
        if self.password_hash.startswith('$2'):
            return bcrypt.checkpw(raw_password.encode('utf-8')[:72], self.password_hash.encode('utf-8'))
        legacy = hashlib.sha256(raw_password.encode('utf-8')).hexdigest()
        return hmac.compare_digest(legacy.lower(), self.password_hash.lower())

    @property
    def has_legacy_hash(self) -> bool:
        return bool(self.password_hash) and not self.password_hash.startswith('$2')

    def mark_login(self):
        self.last_login = datetime.now().replace(microsecond=0)

    @property
    def role_display(self):
        return ROLE_DISPLAY_NAMES.get(self.role, self.role)
