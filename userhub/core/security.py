"""
File: userhub/core/security.py
Description: 安全原语 (密码哈希 + JWT 编解码)

本模块负责：
1. 密码加密 (Hash): Argon2id 生成新哈希，兼容校验历史 bcrypt 哈希
2. 密码验证 (Verify): 常量时间比较；哈希格式无法识别时视为不匹配
3. JWT 编码/解码: HS256 签名，强制校验 exp 与 iss
4. 异步封装: CPU 密集型哈希放入线程池执行

令牌的业务语义 (Claims 结构、双密钥、旋转与吊销) 由 domains/tokens 负责，
本模块只提供与业务无关的签名原语。

Created: 2026-03-02
"""

from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt
from pwdlib import PasswordHash
from pwdlib.exceptions import UnknownHashError
from pwdlib.hashers.argon2 import Argon2Hasher
from pwdlib.hashers.bcrypt import BcryptHasher
from starlette.concurrency import run_in_threadpool

from userhub.core.config import settings

# 第一个 hasher 用于生成新哈希，其余仅用于校验
password_hash = PasswordHash((Argon2Hasher(), BcryptHasher()))

# 账号不存在时参与比较的占位哈希，使两种失败路径耗时一致
_DUMMY_HASH = password_hash.hash("userhub-dummy-password")


class TokenInvalidError(Exception):
    """令牌签名、格式或签发方校验失败"""


class TokenExpiredError(TokenInvalidError):
    """令牌已过期"""


# ------------------------------------------------------------------------------
# 1. 密码处理 (Password Hashing)
# ------------------------------------------------------------------------------


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """
    验证明文密码与哈希值是否匹配。

    hashed_password 为空时仍与占位哈希比较一次并返回 False，
    调用方无需区分“账号不存在”与“密码错误”。
    """
    if not hashed_password:
        password_hash.verify(plain_password, _DUMMY_HASH)
        return False

    try:
        return password_hash.verify(plain_password, hashed_password)
    except UnknownHashError:
        return False


def get_password_hash(password: str) -> str:
    """生成密码哈希值 (Argon2id)"""
    return password_hash.hash(password)


async def verify_password_async(
    plain_password: str, hashed_password: str | None
) -> bool:
    """异步验证密码（线程池执行，避免阻塞事件循环）"""
    return await run_in_threadpool(verify_password, plain_password, hashed_password)


async def get_password_hash_async(password: str) -> str:
    """异步生成密码哈希（线程池执行，避免阻塞事件循环）"""
    return await run_in_threadpool(get_password_hash, password)


# ------------------------------------------------------------------------------
# 2. JWT 处理 (JSON Web Token)
# ------------------------------------------------------------------------------


def encode_jwt(payload: dict[str, Any], secret_key: str) -> str:
    """使用配置的算法 (HS256) 对 payload 签名。"""
    return jwt.encode(payload, secret_key, algorithm=settings.ALGORITHM)


def decode_jwt(token: str, secret_key: str) -> dict[str, Any]:
    """
    校验签名、过期时间与签发方并返回 payload。

    Raises:
        TokenExpiredError: exp 已过
        TokenInvalidError: 签名错误、格式错误、缺少 exp 或签发方不符
    """
    try:
        return jwt.decode(
            token,
            secret_key,
            algorithms=[settings.ALGORITHM],
            issuer=settings.JWT_ISSUER,
            options={"require_exp": True, "require_iat": True, "require_iss": True},
        )
    except ExpiredSignatureError as e:
        raise TokenExpiredError("token expired") from e
    except JWTError as e:
        raise TokenInvalidError(str(e)) from e
