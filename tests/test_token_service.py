from datetime import datetime, timedelta

import pytest
from fastapi import HTTPException

from models.users import User
from utils.tokenJWT import (
    create_access_token,
    create_refresh_token,
    get_current_user,
    issue_tokens,
    require_admin,
    revoke_refresh_token,
    verify_access,
    verify_refresh,
)


def test_issue_tokens_stores_refresh_token_on_user(db_session, make_user) -> None:
    user = make_user()

    access_token, refresh_token = issue_tokens(db_session, user.id)

    db_session.refresh(user)
    assert access_token
    assert user.refresh_token == refresh_token


def test_issue_tokens_for_missing_user_is_not_found(db_session) -> None:
    with pytest.raises(HTTPException) as exception_info:
        issue_tokens(db_session, 999)

    assert exception_info.value.status_code == 404


def test_verify_access_returns_user_claims(make_user) -> None:
    user = make_user(email='claims@mail.com')

    claims = verify_access(create_access_token(user))

    assert claims['sub'] == str(user.id)
    assert claims['email'] == 'claims@mail.com'
    assert claims['type'] == 'access'


@pytest.mark.parametrize(
    'token_factory',
    [
        lambda user: 'not-a-jwt',
        lambda user: create_access_token(user, expires_delta=timedelta(seconds=-5)),
        lambda user: create_refresh_token(user),
        lambda user: create_access_token(user)[:-4] + 'AAAA',
    ],
    ids=['malformed', 'expired', 'wrong-type', 'bad-signature'],
)
def test_verify_access_rejects_invalid_tokens(make_user, token_factory) -> None:
    user = make_user()

    with pytest.raises(HTTPException) as exception_info:
        verify_access(token_factory(user))

    assert exception_info.value.status_code == 401


def test_verify_refresh_rotates_and_rejects_previous_token(db_session, make_user) -> None:
    user = make_user()
    _, first_refresh = issue_tokens(db_session, user.id)

    _, _, second_refresh = verify_refresh(db_session, first_refresh)

    assert second_refresh != first_refresh
    with pytest.raises(HTTPException) as exception_info:
        verify_refresh(db_session, first_refresh)
    assert exception_info.value.status_code == 401

    # The rotated token is still usable exactly once
    _, _, third_refresh = verify_refresh(db_session, second_refresh)
    assert third_refresh not in (first_refresh, second_refresh)


def test_verify_refresh_rejects_access_token(db_session, make_user) -> None:
    user = make_user()
    access_token, _ = issue_tokens(db_session, user.id)

    with pytest.raises(HTTPException) as exception_info:
        verify_refresh(db_session, access_token)

    assert exception_info.value.status_code == 401


def test_revoked_refresh_token_is_rejected(db_session, make_user) -> None:
    user = make_user()
    _, refresh_token = issue_tokens(db_session, user.id)

    revoke_refresh_token(db_session, db_session.get(User, user.id))

    with pytest.raises(HTTPException) as exception_info:
        verify_refresh(db_session, refresh_token)
    assert exception_info.value.status_code == 401


def test_refresh_token_of_soft_deleted_user_is_rejected(db_session, make_user) -> None:
    user = make_user()
    _, refresh_token = issue_tokens(db_session, user.id)
    user.deleted_at = datetime.now()
    db_session.commit()

    with pytest.raises(HTTPException) as exception_info:
        verify_refresh(db_session, refresh_token)
    assert exception_info.value.status_code == 401


def test_guards_share_token_checks_but_differ_on_missing_user(db_session, make_user) -> None:
    user = make_user(roles=('User', 'Admin'))
    token = create_access_token(user)

    assert get_current_user(token, db_session).id == user.id
    assert require_admin(token, db_session).id == user.id

    for guard in (get_current_user, require_admin):
        with pytest.raises(HTTPException) as exception_info:
            guard(None, db_session)
        assert exception_info.value.status_code == 401

    user.deleted_at = datetime.now()
    db_session.commit()

    with pytest.raises(HTTPException) as exception_info:
        get_current_user(token, db_session)
    assert exception_info.value.status_code == 401

    with pytest.raises(HTTPException) as exception_info:
        require_admin(token, db_session)
    assert exception_info.value.status_code == 403
