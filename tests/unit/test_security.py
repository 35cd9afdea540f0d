"""
File: tests/unit/test_security.py
Description: 安全原语单元测试

1. 密码哈希: Argon2id 生成、bcrypt 历史哈希兼容、无法识别的哈希
2. JWT: 签名 / 过期 / 签发方 / 必填声明校验

Created: 2026-03-02
"""

from datetime import UTC, datetime, timedelta

import pytest
from pwdlib.hashers.bcrypt import BcryptHasher

from userhub.core.config import settings
from userhub.core.security import (
    TokenExpiredError,
    TokenInvalidError,
    decode_jwt,
    encode_jwt,
    get_password_hash,
    get_password_hash_async,
    verify_password,
    verify_password_async,
)


def _payload(**overrides: object) -> dict[str, object]:
    now = datetime.now(UTC)
    payload: dict[str, object] = {
        "user_id": "0190f1c4-8d2e-7a51-b0c3-5f2d9e8a7b61",
        "jti": "jti-1",
        "iss": settings.JWT_ISSUER,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=5)).timestamp()),
    }
    payload.update(overrides)
    return payload


# ------------------------------------------------------------------------------
# 密码哈希
# ------------------------------------------------------------------------------


def test_password_hash_uses_argon2id() -> None:
    hashed = get_password_hash("secret123")

    assert hashed.startswith("$argon2id$")
    assert hashed != "secret123"
    assert verify_password("secret123", hashed) is True
    assert verify_password("secret124", hashed) is False


def test_verify_password_accepts_legacy_bcrypt_hash() -> None:
    legacy = BcryptHasher().hash("secret123")

    assert verify_password("secret123", legacy) is True
    assert verify_password("wrong123", legacy) is False


def test_verify_password_rejects_unknown_hash_format() -> None:
    assert verify_password("secret123", "secret123") is False


@pytest.mark.parametrize("hashed", [None, ""])
def test_verify_password_without_hash_returns_false(hashed: str | None) -> None:
    assert verify_password("secret123", hashed) is False


@pytest.mark.asyncio
async def test_async_hash_helpers() -> None:
    hashed = await get_password_hash_async("abc123")

    assert await verify_password_async("abc123", hashed) is True
    assert await verify_password_async("abc124", hashed) is False


# ------------------------------------------------------------------------------
# JWT
# ------------------------------------------------------------------------------


def test_jwt_round_trip() -> None:
    token = encode_jwt(_payload(), "k1")

    decoded = decode_jwt(token, "k1")

    assert decoded["jti"] == "jti-1"
    assert decoded["iss"] == settings.JWT_ISSUER


def test_jwt_expired_raises_expired_error() -> None:
    past = datetime.now(UTC) - timedelta(minutes=1)
    token = encode_jwt(
        _payload(iat=int(past.timestamp()) - 60, exp=int(past.timestamp())), "k1"
    )

    with pytest.raises(TokenExpiredError):
        decode_jwt(token, "k1")


def test_jwt_wrong_secret_is_invalid_not_expired() -> None:
    token = encode_jwt(_payload(), "k1")

    with pytest.raises(TokenInvalidError) as exc_info:
        decode_jwt(token, "k2")

    assert not isinstance(exc_info.value, TokenExpiredError)


def test_jwt_foreign_issuer_is_invalid() -> None:
    token = encode_jwt(_payload(iss="someone_else"), "k1")

    with pytest.raises(TokenInvalidError):
        decode_jwt(token, "k1")


def test_jwt_without_exp_is_invalid() -> None:
    payload = _payload()
    payload.pop("exp")
    token = encode_jwt(payload, "k1")

    with pytest.raises(TokenInvalidError):
        decode_jwt(token, "k1")


def test_jwt_garbage_is_invalid() -> None:
    with pytest.raises(TokenInvalidError):
        decode_jwt("not-a-jwt", "k1")
