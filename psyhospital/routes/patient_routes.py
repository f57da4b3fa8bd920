from flask import Blueprint
from psyhospital.controllers.patient_controller import (
    list_patients,
    get_patient,
    search_patients,
    advanced_search,
    create_patient,
    update_patient,
    discharge_patient,
    get_discharge,
)

patient_bp = Blueprint('patients', __name__)


@patient_bp.route('', methods=['GET'])
def list_patients_route():
    return list_patients()


@patient_bp.route('', methods=['POST'])
def create_patient_route():
    return create_patient()


@patient_bp.route('/search', methods=['GET'])
def search_patients_route():
    return search_patients()


@patient_bp.route('/advanced-search', methods=['GET'])
def advanced_search_route():
    return advanced_search()


@patient_bp.route('/<int:patient_id>', methods=['GET'])
def get_patient_route(patient_id):
    return get_patient(patient_id)


@patient_bp.route('/<int:patient_id>', methods=['PATCH'])
def update_patient_route(patient_id):
    return update_patient(patient_id)


@patient_bp.route('/<int:patient_id>/discharge', methods=['POST'])
def discharge_patient_route(patient_id):
    return discharge_patient(patient_id)


@patient_bp.route('/<int:patient_id>/discharge', methods=['GET'])
def get_discharge_route(patient_id):
    return get_discharge(patient_id)
