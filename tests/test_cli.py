from psyhospital import db
from psyhospital.models.user import User
from psyhospital.models.ward import Ward


def test_create_user(app):
    runner = app.test_cli_runner()
    result = runner.invoke(args=['create-user', 'night_nurse', 'Belova Svetlana', '--role', 'nurse',
                                 '--password', 'long-night-shift'])
    assert result.exit_code == 0, result.output

    with app.app_context():
        user = User.query.filter_by(username='night_nurse').one()
        assert user.role == 'nurse'
        assert user.verify_password('long-night-shift')

    result = runner.invoke(args=['create-user', 'night_nurse', 'Someone Else', '--password', 'x'])
    assert result.exit_code != 0
    assert 'already exists' in result.output


def test_create_ward(app):
    runner = app.test_cli_runner()
    result = runner.invoke(args=['create-ward', '305', 'Rehabilitation', '6'])
    assert result.exit_code == 0, result.output

    with app.app_context():
        ward = db.session.execute(db.select(Ward).filter_by(ward_number='305')).scalar_one()
        assert ward.total_beds == 6
        assert ward.occupied_beds == 0

    result = runner.invoke(args=['create-ward', '305', 'Rehabilitation', '6'])
    assert result.exit_code != 0
    assert runner.invoke(args=['create-ward', '306', 'Rehabilitation', '0']).exit_code != 0


def test_init_db_is_idempotent(app):
    result = app.test_cli_runner().invoke(args=['init-db'])
    assert result.exit_code == 0
    assert 'initialized' in result.output
