from flask import Blueprint
from psyhospital.controllers.audit_controller import list_audit_entries

audit_bp = Blueprint('audit', __name__)


@audit_bp.route('', methods=['GET'])
def list_audit_route():
    return list_audit_entries()
