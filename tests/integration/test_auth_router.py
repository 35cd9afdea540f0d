"""
File: tests/integration/test_auth_router.py
Description: 认证接口集成测试

本模块使用 httpx.AsyncClient 对 /api/v1/auth 进行端到端测试，验证：
1. 统一响应信封与语义化 HTTP 状态码
2. 账号注册 / 登录、手机号验证码登录、微信小程序登录
3. Web 平台 Refresh Token 走 HttpOnly Cookie
4. 刷新令牌旋转与登出吊销

Created: 2026-03-02
"""

from typing import Any

import pytest
from httpx import AsyncClient, Response

from tests.stubs import StubSmsClient, StubWechatClient
from userhub.core.config import settings

AUTH = f"{settings.API_V1_STR}/auth"
PHONE = "13800001111"


async def _register(
    client: AsyncClient, account: str = "alice", password: str = "secret123"
) -> Response:
    return await client.post(
        f"{AUTH}/account/register",
        json={"account": account, "password": password, "confirm_password": password},
    )


async def _login(
    client: AsyncClient,
    account: str = "alice",
    password: str = "secret123",
    platform: str | None = None,
) -> Response:
    headers = {"X-Platform": platform} if platform else {}
    return await client.post(
        f"{AUTH}/account/login",
        json={"account": account, "password": password},
        headers=headers,
    )


def _data(response: Response) -> dict[str, Any]:
    return response.json()["data"]


# ------------------------------------------------------------------------------
# 账号注册 / 登录
# ------------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_register_account(client: AsyncClient) -> None:
    response = await _register(client)

    assert response.status_code == 200
    body = response.json()
    assert body["code"] == "success"
    assert body["message"] == "注册成功"
    assert body["data"]["user_id"]
    assert body["request_id"] == response.headers.get("X-Request-ID")
    # 注册不签发令牌
    assert "access_token" not in body["data"]


@pytest.mark.asyncio
async def test_register_duplicate_account(client: AsyncClient) -> None:
    await _register(client)

    response = await _register(client, password="other456")

    assert response.status_code == 409
    assert response.json()["code"] == "auth.account_exist"


@pytest.mark.asyncio
async def test_register_password_mismatch(client: AsyncClient) -> None:
    response = await client.post(
        f"{AUTH}/account/register",
        json={
            "account": "alice",
            "password": "secret123",
            "confirm_password": "secret124",
        },
    )

    assert response.status_code == 400
    assert response.json()["code"] == "auth.password_mismatch"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"account": "alice", "password": "abcdef", "confirm_password": "abcdef"},
        {"account": "alice", "password": "123456", "confirm_password": "123456"},
        {"account": "bad name!", "password": "secret123", "confirm_password": "secret123"},
        {"account": "alice"},
    ],
    ids=["no-digit", "no-letter", "bad-account", "missing-fields"],
)
async def test_register_validation_errors(
    client: AsyncClient, payload: dict[str, str]
) -> None:
    response = await client.post(f"{AUTH}/account/register", json=payload)

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "system.invalid_params"
    # 校验错误不回传原始输入 (可能含密码)
    for error in body["data"]["errors"]:
        assert "input" not in error


@pytest.mark.asyncio
async def test_login_app_returns_both_tokens_in_body(client: AsyncClient) -> None:
    await _register(client)

    response = await _login(client)

    assert response.status_code == 200
    data = _data(response)
    assert data["access_token"]
    assert data["refresh_token"]
    assert data["token_type"] == "bearer"
    assert data["expires_in"] == 900
    assert "set-cookie" not in response.headers


@pytest.mark.asyncio
async def test_login_web_sets_http_only_cookie(client: AsyncClient) -> None:
    await _register(client)

    response = await _login(client, platform="web")

    assert response.status_code == 200
    data = _data(response)
    assert data["access_token"]
    assert data["refresh_token"] is None

    cookie = response.headers["set-cookie"]
    assert cookie.startswith(f"{settings.REFRESH_COOKIE_NAME}=")
    lowered = cookie.lower()
    assert "httponly" in lowered
    assert "secure" in lowered
    assert "samesite=lax" in lowered
    assert f"max-age={10 * 24 * 3600}" in lowered


@pytest.mark.asyncio
async def test_login_invalid_platform_header(client: AsyncClient) -> None:
    await _register(client)

    response = await _login(client, platform="desktop")

    assert response.status_code == 400
    assert response.json()["code"] == "system.invalid_params"


@pytest.mark.asyncio
async def test_login_wrong_password_matches_unknown_account(
    client: AsyncClient,
) -> None:
    await _register(client)

    wrong = await _login(client, password="wrong123")
    unknown = await _login(client, account="nobody")

    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json()["code"] == unknown.json()["code"] == "auth.invalid_credentials"
    assert wrong.json()["message"] == unknown.json()["message"] == "账号或密码错误"


# ------------------------------------------------------------------------------
# 手机号验证码
# ------------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_phone_captcha_login_flow(
    client: AsyncClient, sms_client: StubSmsClient
) -> None:
    sent = await client.post(f"{AUTH}/phone/captcha", json={"phone": PHONE})
    assert sent.status_code == 200
    assert sent.json()["message"] == "验证码已发送"
    assert sent.json()["data"] is None

    code = sms_client.sent[-1][1]
    login = await client.post(
        f"{AUTH}/phone/login", json={"phone": PHONE, "code": code}
    )
    assert login.status_code == 200
    assert _data(login)["user_id"]

    replay = await client.post(
        f"{AUTH}/phone/login", json={"phone": PHONE, "code": code}
    )
    assert replay.status_code == 401
    assert replay.json()["code"] == "auth.captcha_error"
    assert replay.json()["message"] == "验证码错误或已过期"


@pytest.mark.asyncio
async def test_phone_captcha_invalid_phone(client: AsyncClient) -> None:
    response = await client.post(f"{AUTH}/phone/captcha", json={"phone": "12345"})

    assert response.status_code == 400
    assert response.json()["code"] == "system.invalid_params"


@pytest.mark.asyncio
async def test_phone_captcha_sms_failure(
    client: AsyncClient, sms_client: StubSmsClient
) -> None:
    sms_client.fail = True

    response = await client.post(f"{AUTH}/phone/captcha", json={"phone": PHONE})

    assert response.status_code == 502
    assert response.json()["code"] == "system.upstream_error"


# ------------------------------------------------------------------------------
# 微信小程序
# ------------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_wechat_login(
    client: AsyncClient, wechat_client: StubWechatClient
) -> None:
    wechat_client.sessions = {"wx-code": "openid-xyz"}

    ok = await client.post(
        f"{AUTH}/wechat/login",
        json={"code": "wx-code"},
        headers={"X-Platform": "wechat"},
    )
    rejected = await client.post(f"{AUTH}/wechat/login", json={"code": "expired"})

    assert ok.status_code == 200
    assert _data(ok)["refresh_token"]
    assert rejected.status_code == 401
    assert rejected.json()["code"] == "auth.wechat_auth_failed"


# ------------------------------------------------------------------------------
# 刷新 / 登出
# ------------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_refresh_rotates_refresh_token(client: AsyncClient) -> None:
    await _register(client)
    tokens = _data(await _login(client))

    rotated = await client.post(
        f"{AUTH}/refresh", json={"refresh_token": tokens["refresh_token"]}
    )
    assert rotated.status_code == 200
    assert rotated.json()["message"] == "令牌刷新成功"
    new_tokens = _data(rotated)
    assert new_tokens["refresh_token"] != tokens["refresh_token"]

    replay = await client.post(
        f"{AUTH}/refresh", json={"refresh_token": tokens["refresh_token"]}
    )
    assert replay.status_code == 401
    assert replay.json()["code"] == "token.revoked"

    # 新的 Access Token 可正常访问受保护接口
    me = await client.get(
        f"{settings.API_V1_STR}/users/me",
        headers={"Authorization": f"Bearer {new_tokens['access_token']}"},
    )
    assert me.status_code == 200


@pytest.mark.asyncio
async def test_refresh_web_reads_and_rewrites_cookie(client: AsyncClient) -> None:
    await _register(client)
    tokens = _data(await _login(client))

    response = await client.post(
        f"{AUTH}/refresh",
        headers={
            "X-Platform": "web",
            "Cookie": f"{settings.REFRESH_COOKIE_NAME}={tokens['refresh_token']}",
        },
    )

    assert response.status_code == 200
    assert _data(response)["refresh_token"] is None
    cookie = response.headers["set-cookie"]
    assert cookie.startswith(f"{settings.REFRESH_COOKIE_NAME}=")
    assert tokens["refresh_token"] not in cookie


@pytest.mark.asyncio
async def test_refresh_without_token(client: AsyncClient) -> None:
    response = await client.post(f"{AUTH}/refresh")

    assert response.status_code == 401
    assert response.json()["code"] == "auth.missing_refresh_token"


@pytest.mark.asyncio
async def test_refresh_with_garbage_token(client: AsyncClient) -> None:
    response = await client.post(f"{AUTH}/refresh", json={"refresh_token": "garbage"})

    assert response.status_code == 401
    assert response.json()["code"] == "token.invalid"


@pytest.mark.asyncio
async def test_logout_revokes_refresh_token(client: AsyncClient) -> None:
    await _register(client)
    tokens = _data(await _login(client))

    response = await client.post(
        f"{AUTH}/logout",
        json={"refresh_token": tokens["refresh_token"]},
        headers={"Authorization": f"Bearer {tokens['access_token']}"},
    )
    assert response.status_code == 200
    assert response.json()["message"] == "已安全退出"

    refresh = await client.post(
        f"{AUTH}/refresh", json={"refresh_token": tokens["refresh_token"]}
    )
    assert refresh.status_code == 401
    assert refresh.json()["code"] == "token.revoked"


@pytest.mark.asyncio
async def test_logout_with_cookie_clears_it(client: AsyncClient) -> None:
    await _register(client)
    tokens = _data(await _login(client))

    response = await client.post(
        f"{AUTH}/logout",
        headers={"Cookie": f"{settings.REFRESH_COOKIE_NAME}={tokens['refresh_token']}"},
    )

    assert response.status_code == 200
    assert "max-age=0" in response.headers["set-cookie"].lower()


@pytest.mark.asyncio
async def test_logout_tolerates_garbage_tokens(client: AsyncClient) -> None:
    response = await client.post(
        f"{AUTH}/logout",
        json={"refresh_token": "garbage"},
        headers={"Authorization": "Bearer also-garbage"},
    )

    assert response.status_code == 200
    assert response.json()["code"] == "success"
