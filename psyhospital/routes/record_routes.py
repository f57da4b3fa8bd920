from flask import Blueprint
from psyhospital.controllers.record_controller import patient_records, get_record, add_record

record_bp = Blueprint('records', __name__)


@record_bp.route('', methods=['POST'])
def add_record_route():
    return add_record()


@record_bp.route('/patient/<int:patient_id>', methods=['GET'])
def patient_records_route(patient_id):
    return patient_records(patient_id)


@record_bp.route('/<int:record_id>', methods=['GET'])
def get_record_route(record_id):
    return get_record(record_id)
