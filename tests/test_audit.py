def test_mutations_are_audited(client, headers, admit, prescribe, users):
    patient = admit('Petrov Petr')
    prescription = prescribe(patient_id=patient['patient_id'])
    client.post(f"/prescriptions/{prescription['prescription_id']}/execute", json={}, headers=headers['nurse'])

    resp = client.get('/audit', headers=headers['admin'])
    assert resp.status_code == 200
    actions = [e['action'] for e in resp.get_json()['data']]
    assert actions[:3] == ['EXECUTE_PRESCRIPTION', 'CREATE_PRESCRIPTION', 'CREATE_PATIENT']

    resp = client.get(f"/audit?user_id={users['nurse']}", headers=headers['admin'])
    entries = resp.get_json()['data']
    assert [e['username'] for e in entries] == ['nurse']

    resp = client.get('/audit?action=create_patient&entity_type=Patient', headers=headers['admin'])
    entries = resp.get_json()['data']
    assert len(entries) == 1
    assert entries[0]['entity_id'] == patient['patient_id']


def test_audit_limit(client, headers, admit):
    for name in ('A One', 'B Two', 'C Three'):
        admit(name)
    resp = client.get('/audit?limit=2', headers=headers['admin'])
    assert resp.get_json()['count'] == 2
    assert client.get('/audit?limit=two', headers=headers['admin']).status_code == 400


def test_failed_mutation_leaves_no_audit_row(client, headers, admit):
    pid = admit()['patient_id']
    client.post(f'/patients/{pid}/discharge', json={'reason': 'Better', 'final_diagnosis': 'short'},
                headers=headers['doctor'])

    resp = client.get('/audit?action=DISCHARGE_PATIENT', headers=headers['admin'])
    assert resp.get_json()['count'] == 0


def test_audit_is_admin_only(client, headers):
    assert client.get('/audit', headers=headers['doctor']).status_code == 403
