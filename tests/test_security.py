from datetime import timedelta

from auth.security import hash_password, issue_access_token, user_id_from_token, verify_password


class TestPasswords:
    def test_hash_roundtrip(self):
        hashed = hash_password("secret123")
        assert verify_password("secret123", hashed)
        assert not verify_password("wrong", hashed)

    def test_malformed_or_missing_hash_is_rejected(self):
        assert not verify_password("secret123", "not-a-bcrypt-hash")
        assert not verify_password("secret123", None)


class TestAccessTokens:
    def test_subject_is_recovered(self):
        assert user_id_from_token(issue_access_token(42, "admin")) == 42

    def test_expired_token(self):
        assert user_id_from_token(issue_access_token(42, ttl=timedelta(seconds=-5))) is None

    def test_garbage_token(self):
        assert user_id_from_token("not.a.jwt") is None
