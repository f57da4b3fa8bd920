from flask import Blueprint
from psyhospital.controllers.prescription_controller import (
    create_prescription,
    patient_prescriptions,
    get_prescription,
    expiring_prescriptions,
    execute_prescription,
    prescription_executions,
    extend_prescription,
    cancel_prescription,
    complete_prescription,
    complete_expired_prescriptions,
)

prescription_bp = Blueprint('prescriptions', __name__)


@prescription_bp.route('', methods=['POST'])
def create_prescription_route():
    return create_prescription()


@prescription_bp.route('/expiring', methods=['GET'])
def expiring_route():
    return expiring_prescriptions()


@prescription_bp.route('/complete-expired', methods=['POST'])
def complete_expired_route():
    return complete_expired_prescriptions()


@prescription_bp.route('/patient/<int:patient_id>', methods=['GET'])
def patient_prescriptions_route(patient_id):
    return patient_prescriptions(patient_id)


@prescription_bp.route('/<int:prescription_id>', methods=['GET'])
def get_prescription_route(prescription_id):
    return get_prescription(prescription_id)


@prescription_bp.route('/<int:prescription_id>/execute', methods=['POST'])
def execute_route(prescription_id):
    return execute_prescription(prescription_id)


@prescription_bp.route('/<int:prescription_id>/executions', methods=['GET'])
def executions_route(prescription_id):
    return prescription_executions(prescription_id)


@prescription_bp.route('/<int:prescription_id>/extend', methods=['POST'])
def extend_route(prescription_id):
    return extend_prescription(prescription_id)


@prescription_bp.route('/<int:prescription_id>/cancel', methods=['POST'])
def cancel_route(prescription_id):
    return cancel_prescription(prescription_id)


@prescription_bp.route('/<int:prescription_id>/complete', methods=['POST'])
def complete_route(prescription_id):
    return complete_prescription(prescription_id)
