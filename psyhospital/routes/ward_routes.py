from flask import Blueprint
from psyhospital.controllers.ward_controller import (
    list_wards,
    get_ward,
    ward_patients,
    list_department_stats,
    transfer_patient,
)

ward_bp = Blueprint('wards', __name__)


@ward_bp.route('', methods=['GET'])
def list_wards_route():
    return list_wards()


@ward_bp.route('/departments', methods=['GET'])
def departments_route():
    return list_department_stats()


@ward_bp.route('/transfer', methods=['POST'])
def transfer_route():
    return transfer_patient()


@ward_bp.route('/<int:ward_id>', methods=['GET'])
def get_ward_route(ward_id):
    return get_ward(ward_id)


@ward_bp.route('/<int:ward_id>/patients', methods=['GET'])
def ward_patients_route(ward_id):
    return ward_patients(ward_id)
