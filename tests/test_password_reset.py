import logging
from datetime import datetime, timedelta

import pytest

from config import settings
from models.users import User

SEND_CODE = '/api/v1/users/send-code'
RESET = '/api/v1/users/reset'


@pytest.fixture
def outbox(monkeypatch):
    sent = []

    def _fake_send_email(to, subject, text):
        sent.append({'to': to, 'subject': subject, 'text': text})
        return True

    monkeypatch.setattr('routes.auth.send_email', _fake_send_email)
    return sent


def _stored_user(db_session, email: str) -> User:
    user = db_session.query(User).filter(User.email == email).one()
    db_session.refresh(user)
    return user


def test_send_code_stores_six_digit_code_with_ten_minute_expiry(client, db_session, make_user, outbox) -> None:
    make_user(email='reset@x.com')
    before = datetime.now()

    response = client.post(SEND_CODE, json={'email': 'RESET@x.com'})

    assert response.status_code == 200
    user = _stored_user(db_session, 'reset@x.com')
    assert len(user.reset_password_code) == 6
    assert user.reset_password_code.isdigit()
    assert before + timedelta(minutes=10) <= user.reset_password_expiry <= datetime.now() + timedelta(minutes=10)
    assert outbox[0]['to'] == 'reset@x.com'
    assert user.reset_password_code in outbox[0]['text']


def test_send_code_for_unknown_email_is_not_found(client, outbox) -> None:
    response = client.post(SEND_CODE, json={'email': 'nobody@x.com'})

    assert response.status_code == 404
    assert outbox == []


def test_send_code_mail_failure_keeps_code(client, db_session, make_user, monkeypatch) -> None:
    make_user(email='fail@x.com')
    monkeypatch.setattr('routes.auth.send_email', lambda to, subject, text: False)

    response = client.post(SEND_CODE, json={'email': 'fail@x.com'})

    assert response.status_code == 500
    assert response.json()['message'] == 'Failed to send email'
    assert _stored_user(db_session, 'fail@x.com').reset_password_code is not None


def test_reset_with_valid_code_changes_password_once(client, db_session, make_user, outbox) -> None:
    make_user(email='ok@x.com', password='old-pass')
    client.post(SEND_CODE, json={'email': 'ok@x.com'})
    code = _stored_user(db_session, 'ok@x.com').reset_password_code

    response = client.post(RESET, json={'email': 'ok@x.com', 'code': code, 'newPassword': 'new-pass'})

    assert response.status_code == 200
    user = _stored_user(db_session, 'ok@x.com')
    assert user.reset_password_code is None
    assert user.reset_password_expiry is None

    reused = client.post(RESET, json={'email': 'ok@x.com', 'code': code, 'newPassword': 'other-pass'})
    assert reused.status_code == 400

    login = client.post('/api/v1/users/login', json={'email': 'ok@x.com', 'password': 'new-pass'})
    assert login.status_code == 200


def test_reset_with_wrong_code_is_rejected(client, db_session, make_user, outbox) -> None:
    make_user(email='wrong@x.com')
    client.post(SEND_CODE, json={'email': 'wrong@x.com'})
    code = _stored_user(db_session, 'wrong@x.com').reset_password_code
    wrong_code = '000000' if code != '000000' else '111111'

    response = client.post(RESET, json={'email': 'wrong@x.com', 'code': wrong_code, 'newPassword': 'x'})

    assert response.status_code == 400
    assert response.json()['message'] == 'Invalid or expired reset code'


@pytest.mark.parametrize(
    ('expiry_offset', 'expected_status'),
    [
        (timedelta(seconds=-1), 400),
        (timedelta(seconds=0), 400),
        (timedelta(minutes=5), 200),
    ],
)
def test_reset_code_expiry_boundary(client, db_session, make_user, expiry_offset, expected_status) -> None:
    user = make_user(email='exp@x.com')
    # A zero offset is already in the past by the time the request runs
    user.reset_password_code = '123456'
    user.reset_password_expiry = datetime.now() + expiry_offset
    db_session.commit()

    response = client.post(RESET, json={'email': 'exp@x.com', 'code': '123456', 'newPassword': 'new-pass'})

    assert response.status_code == expected_status


def test_reset_requires_all_fields(client) -> None:
    response = client.post(RESET, json={'email': 'x@x.com', 'code': '', 'newPassword': 'p'})

    assert response.status_code == 400


def test_send_code_without_smtp_logs_the_code(client, db_session, make_user, monkeypatch, caplog) -> None:
    monkeypatch.setattr(settings, 'SMTP_HOST', '')
    make_user(email='devmail@x.com')

    with caplog.at_level(logging.INFO, logger='utils.email'):
        response = client.post(SEND_CODE, json={'email': 'devmail@x.com'})

    assert response.status_code == 200
    code = _stored_user(db_session, 'devmail@x.com').reset_password_code
    assert any(code in record.getMessage() for record in caplog.records)
