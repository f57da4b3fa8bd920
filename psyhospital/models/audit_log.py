from psyhospital import db
from datetime import datetime


class AuditLog(db.Model):
    __tablename__ = 'AuditLog'

    log_id = db.Column('LogId', db.Integer, primary_key=True)
    user_id = db.Column('UserId', db.Integer, db.ForeignKey('Users.UserId'), nullable=False)
    action = db.Column('Action', db.String(50), nullable=False)
    entity_type = db.Column('EntityType', db.String(50), nullable=False)
    entity_id = db.Column('EntityId', db.Integer, nullable=True)
    details = db.Column('Details', db.Text, nullable=True)
    created_at = db.Column('CreatedAt', db.DateTime, nullable=False, default=datetime.now)

    user = db.relationship('User')
