from datetime import timedelta
import uuid

import jwt
import pytest
from fastapi import HTTPException

from src.config import Config
from src.utils.auth import generate_password_hash, verify_password_hash, create_token, decode_token


def test_password_hash_round_trip():
    hashed = generate_password_hash('s3cret-pass')

    assert hashed != 's3cret-pass'
    assert verify_password_hash('s3cret-pass', hashed)
    assert not verify_password_hash('wrong-pass', hashed)


def test_access_token_carries_user_identity():
    user_id = uuid.uuid4()
    token = create_token({'user_id': user_id, 'email': 'owner@example.com'}, timedelta(minutes=5))

    payload = decode_token(token)

    assert payload['sub'] == str(user_id)
    assert payload['email'] == 'owner@example.com'
    assert payload['type'] == 'access'
    assert payload['jti']


def test_expired_token_is_rejected():
    token = create_token({'user_id': uuid.uuid4()}, timedelta(minutes=-5))

    with pytest.raises(HTTPException) as exc_info:
        decode_token(token)

    assert exc_info.value.status_code == 401


def test_token_signed_with_another_key_is_rejected():
    token = jwt.encode({'sub': 'someone'}, 'a-different-key-entirely', algorithm=Config.JWT_ALGORITHM)

    with pytest.raises(HTTPException) as exc_info:
        decode_token(token)

    assert exc_info.value.status_code == 403
