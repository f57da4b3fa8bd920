from flask import Blueprint
from psyhospital.controllers.report_controller import (
    current_patients,
    ward_occupancy,
    diagnoses,
    statistics,
    report_pdf,
)

report_bp = Blueprint('reports', __name__)


@report_bp.route('/current-patients', methods=['GET'])
def current_patients_route():
    return current_patients()


@report_bp.route('/ward-occupancy', methods=['GET'])
def ward_occupancy_route():
    return ward_occupancy()


@report_bp.route('/diagnoses', methods=['GET'])
def diagnoses_route():
    return diagnoses()


@report_bp.route('/statistics', methods=['GET'])
def statistics_route():
    return statistics()


@report_bp.route('/<kind>/pdf', methods=['GET'])
def report_pdf_route(kind):
    return report_pdf(kind)
