from datetime import datetime

from psyhospital.controllers.report_controller import diagnosis_statistics
from psyhospital.utils.pdf_reports import truncate


def _seed(client, headers, admit, prescribe, wards):
    admit('Petrov Petr', ward_id=wards['101'], diagnosis='F20.0 Paranoid schizophrenia')
    admit('Sokolova Maria', ward_id=wards['201'], diagnosis='F20.0 Paranoid schizophrenia')
    no_ward = admit('Orlov <Ivan> & Co', diagnosis=None)
    prescribe(patient_id=no_ward['patient_id'])
    leaving = admit('Volkova Nina', ward_id=wards['101'], diagnosis='F32.2 Severe depressive episode',
                    admission_date='2024-01-10T09:00:00')
    client.post(f"/patients/{leaving['patient_id']}/discharge",
                json={'reason': 'Recovered', 'final_diagnosis': 'F32.2 in full remission',
                      'discharge_date': '2024-01-31T12:00:00'},
                headers=headers['doctor'])


def test_current_patients_report(client, headers, admit, prescribe, wards):
    _seed(client, headers, admit, prescribe, wards)

    resp = client.get('/reports/current-patients', headers=headers['admin'])
    assert resp.status_code == 200
    rows = {r['full_name']: r for r in resp.get_json()['data']}

    assert set(rows) == {'Petrov Petr', 'Sokolova Maria', 'Orlov <Ivan> & Co'}
    assert rows['Orlov <Ivan> & Co']['ward_number'] == 'Not assigned'
    assert rows['Orlov <Ivan> & Co']['department'] == '-'
    assert rows['Orlov <Ivan> & Co']['diagnosis'] == '-'
    assert rows['Petrov Petr']['department'] == 'General'
    assert rows['Petrov Petr']['days_in_hospital'] == 0


def test_ward_occupancy_report(client, headers, admit, prescribe, wards):
    _seed(client, headers, admit, prescribe, wards)

    resp = client.get('/reports/ward-occupancy', headers=headers['doctor'])
    rows = resp.get_json()['data']
    assert [(r['department'], r['ward_number']) for r in rows] == [
        ('Acute', '201'), ('General', '101'), ('General', '102'),
    ]
    assert rows[0]['status'] == 'Half full'
    assert rows[1]['occupied_beds'] == 1


def test_diagnosis_statistics(client, headers, admit, prescribe, wards):
    _seed(client, headers, admit, prescribe, wards)

    resp = client.get('/reports/diagnoses', headers=headers['doctor'])
    rows = resp.get_json()['data']
    assert rows[0] == {'diagnosis': 'F20.0 Paranoid schizophrenia', 'patient_count': 2, 'average_duration': 0}
    by_name = {r['diagnosis']: r for r in rows}
    assert by_name['Not specified']['patient_count'] == 1
    assert by_name['F32.2 Severe depressive episode']['average_duration'] == 21

    resp = client.get('/reports/diagnoses?date_from=2024-01-01&date_to=2024-01-31', headers=headers['doctor'])
    assert [r['diagnosis'] for r in resp.get_json()['data']] == ['F32.2 Severe depressive episode']


def test_average_duration_uses_now_for_current_patients(app, admit):
    admit('Petrov Petr', diagnosis='F41.1', admission_date='2024-02-01T08:00:00')
    admit('Sokolova Maria', diagnosis='F41.1', admission_date='2024-02-04T08:00:00')

    with app.app_context():
        rows = diagnosis_statistics(now=datetime(2024, 2, 11, 8, 0))
    # stays of 10 and 7 days average to 8.5, reported as whole days
    assert rows == [{'diagnosis': 'F41.1', 'patient_count': 2, 'average_duration': 8}]


def test_hospital_statistics(client, headers, admit, prescribe, wards):
    _seed(client, headers, admit, prescribe, wards)

    resp = client.get('/reports/statistics', headers=headers['admin'])
    assert resp.get_json()['data'] == {
        'current_patients': 3,
        'total_discharged': 1,
        'total_beds': 7,
        'occupied_beds': 2,
        'available_beds': 5,
        'occupancy_rate': 28.6,
        'active_prescriptions': 1,
    }


def test_reports_are_for_doctors_and_admins(client, headers):
    assert client.get('/reports/statistics', headers=headers['nurse']).status_code == 403
    assert client.get('/reports/ward-occupancy/pdf', headers=headers['nurse']).status_code == 403


def test_pdf_export(client, headers, admit, prescribe, wards):
    _seed(client, headers, admit, prescribe, wards)

    for kind in ('current-patients', 'ward-occupancy', 'diagnoses'):
        resp = client.get(f'/reports/{kind}/pdf', headers=headers['doctor'])
        assert resp.status_code == 200
        assert resp.mimetype == 'application/pdf'
        assert resp.data.startswith(b'%PDF')
        disposition = resp.headers['Content-Disposition']
        assert 'attachment' in disposition
        assert f'report_{kind}_' in disposition


def test_unknown_pdf_report(client, headers):
    assert client.get('/reports/salaries/pdf', headers=headers['admin']).status_code == 404


def test_truncate():
    assert truncate('short', 40) == 'short'
    long_text = 'x' * 50
    assert truncate(long_text, 40) == 'x' * 37 + '...'
    assert len(truncate(long_text, 40)) == 40


def test_stay_counts_calendar_days(app, admit):
    admit('Late Arrival', diagnosis='F41.1', admission_date='2024-02-01T23:00:00')

    with app.app_context():
        rows = diagnosis_statistics(now=datetime(2024, 2, 2, 1, 0))
    assert rows == [{'diagnosis': 'F41.1', 'patient_count': 1, 'average_duration': 1}]
