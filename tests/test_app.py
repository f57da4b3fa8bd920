from psyhospital import _build_database_uri, _split_rate_limits, create_app


def test_rate_limit_values():
    assert _split_rate_limits('200 per hour; 20 per minute') == ['200 per hour', '20 per minute']
    assert _split_rate_limits("['50 per hour']") == ['50 per hour']
    assert _split_rate_limits('often, 10 per second') == ['10 per second']
    assert _split_rate_limits(None) == []


def test_database_uri_fallback(monkeypatch):
    for name in ('DATABASE_URL', 'MSSQL_SERVER', 'MSSQL_DB'):
        monkeypatch.delenv(name, raising=False)
    assert _build_database_uri() == 'sqlite:///psyhospital.db'

    monkeypatch.setenv('DATABASE_URL', 'postgresql://ward@db/hospital')
    assert _build_database_uri() == 'postgresql://ward@db/hospital'


def test_trusted_mssql_uri(monkeypatch):
    monkeypatch.delenv('DATABASE_URL', raising=False)
    monkeypatch.setenv('MSSQL_SERVER', 'localhost')
    monkeypatch.setenv('MSSQL_DB', 'PsychiatricHospitalDB')
    monkeypatch.setenv('MSSQL_TRUSTED', 'true')
    uri = _build_database_uri()
    assert uri.startswith('mssql+pyodbc://@localhost/PsychiatricHospitalDB')
    assert 'trusted_connection=yes' in uri


def test_test_config_overrides(app):
    assert app.config['TESTING'] is True
    assert app.config['SQLALCHEMY_DATABASE_URI'] == 'sqlite://'


def test_unknown_route_and_security_headers(client):
    resp = client.get('/nowhere')
    assert resp.status_code == 404
    assert resp.headers['X-Content-Type-Options'] == 'nosniff'


def test_log_level_from_config():
    app = create_app({'TESTING': True, 'SQLALCHEMY_DATABASE_URI': 'sqlite://', 'LOG_LEVEL': 'warning'})
    assert app.logger.level == 30
