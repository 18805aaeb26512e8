"""Unit tests for taskhub.utils.security"""

from __future__ import annotations

from taskhub.utils.security import (
    generate_id,
    generate_invite_token,
    hash_password,
    unusable_password,
    verify_password,
)
from taskhub.utils.validation import validate_record_id


class TestPasswordHashing:
    def test_round_trip(self):
        hashed = hash_password("secret123", rounds=4)
        assert hashed != "secret123"
        assert verify_password("secret123", hashed)

    def test_wrong_password(self):
        hashed = hash_password("secret123", rounds=4)
        assert not verify_password("secret124", hashed)

    def test_salted(self):
        assert hash_password("secret123", rounds=4) != hash_password("secret123", rounds=4)

    def test_long_passwords_truncated_consistently(self):
        long = "p" * 100
        assert verify_password(long, hash_password(long, rounds=4))

    def test_malformed_hash_never_verifies(self):
        assert not verify_password("anything", "not-a-bcrypt-hash")

    def test_unusable_password_never_verifies(self):
        placeholder = unusable_password()
        assert not verify_password("", placeholder)
        assert not verify_password(placeholder, placeholder)


class TestGenerateId:
    def test_unique(self):
        ids = {generate_id() for _ in range(100)}
        assert len(ids) == 100

    def test_is_valid_record_id(self):
        assert validate_record_id(generate_id())


class TestGenerateInviteToken:
    def test_default_length_is_hex_of_32_bytes(self):
        token = generate_invite_token()
        assert len(token) == 64
        int(token, 16)

    def test_custom_length(self):
        assert len(generate_invite_token(8)) == 16

    def test_unique(self):
        assert len({generate_invite_token() for _ in range(50)}) == 50
