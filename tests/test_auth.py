from datetime import datetime, timedelta, timezone

import pytest
from jose import JWTError, jwt

from inventory_service import auth


def _encode(**claims):
    return jwt.encode(claims, auth.SECRET_KEY, algorithm=auth.ALGORITHM)


class TestDecodeToken:
    def test_valid_token(self, admin_token):
        user = auth.decode_token(admin_token)
        assert (user.id, user.email, user.role) == (1, "admin@example.com", "admin")
        assert user.can_write

    def test_regular_user_cannot_write(self):
        user = auth.decode_token(_encode(sub="2", email="u@example.com", role="user"))
        assert not user.can_write

    def test_missing_claims(self):
        with pytest.raises(ValueError, match="role"):
            auth.decode_token(_encode(sub="2", email="u@example.com"))

    def test_non_numeric_subject(self):
        with pytest.raises(ValueError):
            auth.decode_token(_encode(sub="abc", email="u@example.com", role="admin"))

    def test_expired(self):
        expired = datetime.now(timezone.utc) - timedelta(minutes=1)
        with pytest.raises(JWTError):
            auth.decode_token(_encode(sub="1", email="a@example.com", role="admin", exp=expired))

    def test_wrong_secret(self):
        token = jwt.encode({"sub": "1", "email": "a@example.com", "role": "admin"}, "other", algorithm="HS256")
        with pytest.raises(JWTError):
            auth.decode_token(token)
