"""Tests for the token endpoint flow of OAuthServer.authenticate.

Covers grant dispatch, the ordering of client verification, grant
verification and token generation, refresh token handling, response
normalization, and error propagation.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from oauthcore.authenticators.callback import CallbackAuthenticator
from oauthcore.authenticators.password import PasswordAuthenticator
from oauthcore.errors import ErrorCode, OAuthError
from oauthcore.hooks import GrantContext


async def verify_admin(username, password):
    if username == "admin" and password == "1234":
        return {"username": "admin"}
    raise OAuthError("invalid_grant")


class TestGrantDispatch:
    async def test_missing_grant_type_is_unsupported(self, make_server, make_request):
        # Arrange
        verify_client = AsyncMock()
        server = make_server(verify_client=verify_client)

        # Act & Assert
        with pytest.raises(OAuthError) as exc_info:
            await server.authenticate(make_request(inputs={"username": "admin"}))
        assert exc_info.value.code is ErrorCode.UNSUPPORTED_GRANT_TYPE
        assert exc_info.value.status == 400
        verify_client.assert_not_awaited()

    async def test_empty_grant_type_is_unsupported(self, make_server, make_request):
        # Arrange
        server = make_server()

        # Act & Assert
        with pytest.raises(OAuthError) as exc_info:
            await server.authenticate(make_request(inputs={"grant_type": ""}))
        assert exc_info.value.code is ErrorCode.UNSUPPORTED_GRANT_TYPE

    @pytest.mark.parametrize("grant_type", ["password", "implicit", "urn:custom"])
    async def test_unregistered_grant_type_is_unsupported(
        self, make_server, make_request, grant_type
    ):
        # Arrange
        generate_token = AsyncMock()
        server = make_server(generate_token=generate_token)

        # Act & Assert
        with pytest.raises(OAuthError) as exc_info:
            await server.authenticate(make_request(inputs={"grant_type": grant_type}))
        assert exc_info.value.code is ErrorCode.UNSUPPORTED_GRANT_TYPE
        generate_token.assert_not_awaited()

    async def test_dispatches_to_registered_authenticator(
        self, make_server, make_request
    ):
        # Arrange
        server = make_server()
        authenticator = MagicMock()
        authenticator.authenticate = AsyncMock(return_value={"device": "tv"})
        server.add_authenticator("urn:device", authenticator)
        request = make_request(inputs={"grant_type": "urn:device"})

        # Act
        await server.authenticate(request)

        # Assert
        authenticator.authenticate.assert_awaited_once_with(request, server)

    async def test_credentials_thread_into_generate_token(
        self, make_server, make_request
    ):
        # Arrange
        credentials = object()
        generate_token = AsyncMock(return_value={"access_token": "abc"})
        server = make_server(generate_token=generate_token)
        server.add_authenticator(
            "custom", CallbackAuthenticator(AsyncMock(return_value=credentials))
        )

        # Act
        await server.authenticate(make_request(inputs={"grant_type": "custom"}))

        # Assert
        generate_token.assert_awaited_once()
        passed_credentials, context = generate_token.await_args.args
        assert passed_credentials is credentials
        assert context == GrantContext(grant_type="custom", server=server)


class TestOrdering:
    async def test_client_then_grant_then_token(self, make_server, make_request):
        # Arrange
        calls = []

        async def verify_client(request, context):
            calls.append(("verify_client", context.grant_type))

        async def verify(username, password):
            calls.append(("verify", username))
            return {"username": username}

        async def generate_token(credentials, context):
            calls.append(("generate_token", credentials["username"]))
            return {"access_token": "abc"}

        server = make_server(verify_client=verify_client, generate_token=generate_token)
        server.add_authenticator("password", PasswordAuthenticator(verify))
        request = make_request(
            inputs={"grant_type": "password", "username": "admin", "password": "1234"}
        )

        # Act
        await server.authenticate(request)

        # Assert
        assert calls == [
            ("verify_client", "password"),
            ("verify", "admin"),
            ("generate_token", "admin"),
        ]

    async def test_client_failure_stops_before_grant_verification(
        self, make_server, make_request
    ):
        # Arrange
        verify = AsyncMock()
        generate_token = AsyncMock()
        server = make_server(
            verify_client=AsyncMock(side_effect=OAuthError("invalid_client")),
            generate_token=generate_token,
        )
        server.add_authenticator("password", PasswordAuthenticator(verify))
        request = make_request(
            inputs={"grant_type": "password", "username": "admin", "password": "1234"}
        )

        # Act & Assert
        with pytest.raises(OAuthError) as exc_info:
            await server.authenticate(request)
        assert exc_info.value.code is ErrorCode.INVALID_CLIENT
        verify.assert_not_awaited()
        generate_token.assert_not_awaited()

    async def test_client_verified_before_unknown_grant_rejected(
        self, make_server, make_request
    ):
        # Arrange
        verify_client = AsyncMock()
        server = make_server(verify_client=verify_client)

        # Act & Assert
        with pytest.raises(OAuthError):
            await server.authenticate(make_request(inputs={"grant_type": "unknown"}))
        verify_client.assert_awaited_once()

    async def test_grant_failure_stops_before_token_generation(
        self, make_server, make_request
    ):
        # Arrange
        generate_token = AsyncMock()
        server = make_server(generate_token=generate_token)
        server.add_authenticator("password", PasswordAuthenticator(verify_admin))
        request = make_request(
            inputs={"grant_type": "password", "username": "admin", "password": "nope"}
        )

        # Act & Assert
        with pytest.raises(OAuthError) as exc_info:
            await server.authenticate(request)
        assert exc_info.value.code is ErrorCode.INVALID_GRANT
        generate_token.assert_not_awaited()


class TestResponseNormalization:
    async def test_password_grant_uses_default_token_type(
        self, make_server, make_request
    ):
        # Arrange
        server = make_server(
            generate_token=AsyncMock(
                return_value={"access_token": "token:admin", "expires_in": 3600}
            )
        )
        server.add_authenticator("password", PasswordAuthenticator(verify_admin))
        request = make_request(
            inputs={"grant_type": "password", "username": "admin", "password": "1234"}
        )

        # Act
        response = await server.authenticate(request)

        # Assert
        assert response == {
            "access_token": "token:admin",
            "token_type": "Bearer",
            "expires_in": 3600,
        }

    async def test_configured_token_type_used_as_default(
        self, make_server, make_request
    ):
        # Arrange
        server = make_server(token_type="MAC")
        server.add_authenticator("password", PasswordAuthenticator(verify_admin))
        request = make_request(
            inputs={"grant_type": "password", "username": "admin", "password": "1234"}
        )

        # Act
        response = await server.authenticate(request)

        # Assert
        assert response["token_type"] == "MAC"

    async def test_hook_token_type_overrides_default(self, make_server, make_request):
        # Arrange
        server = make_server(
            generate_token=AsyncMock(
                return_value={"access_token": "apptoken:1111", "token_type": "Basic"}
            )
        )
        server.add_authenticator("password", PasswordAuthenticator(verify_admin))
        request = make_request(
            inputs={"grant_type": "password", "username": "admin", "password": "1234"}
        )

        # Act
        response = await server.authenticate(request)

        # Assert
        assert response["token_type"] == "Basic"

    async def test_absent_fields_omitted(self, make_server, make_request):
        # Arrange
        server = make_server(
            generate_token=AsyncMock(
                return_value={"access_token": "abc", "refresh_token": None}
            )
        )
        server.add_authenticator("custom", CallbackAuthenticator(AsyncMock()))

        # Act
        response = await server.authenticate(make_request(inputs={"grant_type": "custom"}))

        # Assert
        assert response == {"access_token": "abc", "token_type": "Bearer"}

    async def test_optional_fields_passed_through_unchanged(
        self, make_server, make_request
    ):
        # Arrange
        server = make_server(
            generate_token=AsyncMock(
                return_value={
                    "access_token": "token:admin",
                    "expires_in": "3600",
                    "scope": ["read", "write"],
                }
            )
        )
        server.add_authenticator("password", PasswordAuthenticator(verify_admin))
        request = make_request(
            inputs={"grant_type": "password", "username": "admin", "password": "1234"}
        )

        # Act
        response = await server.authenticate(request)

        # Assert
        assert response == {
            "access_token": "token:admin",
            "token_type": "Bearer",
            "expires_in": "3600",
            "scope": ["read", "write"],
        }

    @pytest.mark.parametrize("result", [None, "token", 123])
    async def test_non_structured_result_is_invalid_grant(
        self, make_server, make_request, result
    ):
        # Arrange
        server = make_server(generate_token=AsyncMock(return_value=result))
        server.add_authenticator("custom", CallbackAuthenticator(AsyncMock()))

        # Act & Assert
        with pytest.raises(OAuthError) as exc_info:
            await server.authenticate(make_request(inputs={"grant_type": "custom"}))
        assert exc_info.value.code is ErrorCode.INVALID_GRANT

    async def test_sync_generate_token_supported(self, make_server, make_request):
        # Arrange
        def generate_token(credentials, context):
            return {"access_token": f"token:{context.grant_type}"}

        server = make_server(generate_token=generate_token)
        server.add_authenticator("custom", CallbackAuthenticator(lambda r, s: None))

        # Act
        response = await server.authenticate(make_request(inputs={"grant_type": "custom"}))

        # Assert
        assert response["access_token"] == "token:custom"


class TestRefreshTokenGrant:
    async def test_refresh_token_checked_by_hook(self, make_server, make_request):
        # Arrange
        check_refresh_token = AsyncMock(return_value={"username": "refreshed_admin"})
        generate_token = AsyncMock(return_value={"access_token": "token:refreshed"})
        server = make_server(
            check_refresh_token=check_refresh_token, generate_token=generate_token
        )
        request = make_request(
            inputs={"grant_type": "refresh_token", "refresh_token": "refreshtoken:admin"}
        )

        # Act
        response = await server.authenticate(request)

        # Assert
        check_refresh_token.assert_awaited_once_with(request, "refreshtoken:admin")
        credentials, context = generate_token.await_args.args
        assert credentials == {"username": "refreshed_admin"}
        assert context.grant_type == "refresh_token"
        assert response["access_token"] == "token:refreshed"

    async def test_refresh_grant_runs_verify_client(self, make_server, make_request):
        # Arrange
        verify_client = AsyncMock(side_effect=OAuthError("invalid_client"))
        check_refresh_token = AsyncMock()
        server = make_server(
            verify_client=verify_client, check_refresh_token=check_refresh_token
        )
        request = make_request(
            inputs={"grant_type": "refresh_token", "refresh_token": "r"}
        )

        # Act & Assert
        with pytest.raises(OAuthError) as exc_info:
            await server.authenticate(request)
        assert exc_info.value.code is ErrorCode.INVALID_CLIENT
        check_refresh_token.assert_not_awaited()

    async def test_missing_refresh_token_passed_to_hook(self, make_server, make_request):
        # Arrange
        check_refresh_token = AsyncMock(side_effect=OAuthError("invalid_grant"))
        server = make_server(check_refresh_token=check_refresh_token)
        request = make_request(inputs={"grant_type": "refresh_token"})

        # Act & Assert
        with pytest.raises(OAuthError) as exc_info:
            await server.authenticate(request)
        assert exc_info.value.code is ErrorCode.INVALID_GRANT
        check_refresh_token.assert_awaited_once_with(request, None)

    async def test_refresh_grant_unsupported_without_hook(
        self, make_server, make_request
    ):
        # Arrange
        server = make_server()
        request = make_request(
            inputs={"grant_type": "refresh_token", "refresh_token": "r"}
        )

        # Act & Assert
        with pytest.raises(OAuthError) as exc_info:
            await server.authenticate(request)
        assert exc_info.value.code is ErrorCode.UNSUPPORTED_GRANT_TYPE

    async def test_authenticator_registered_for_refresh_token_is_ignored(
        self, make_server, make_request
    ):
        # Arrange
        authenticator = CallbackAuthenticator(AsyncMock())
        check_refresh_token = AsyncMock(return_value={"username": "admin"})
        server = make_server(check_refresh_token=check_refresh_token)
        server.add_authenticator("refresh_token", authenticator)

        # Act
        await server.authenticate(
            make_request(inputs={"grant_type": "refresh_token", "refresh_token": "r"})
        )

        # Assert
        check_refresh_token.assert_awaited_once()
        authenticator._callback.assert_not_awaited()

    async def test_password_then_refresh_round_trip(self, make_server, make_request):
        # Arrange
        async def generate_token(credentials, context):
            return {
                "access_token": f"token:{credentials['username']}",
                "expires_in": 3 * 24 * 3600,
                "refresh_token": f"refreshtoken:{credentials['username']}",
            }

        async def check_refresh_token(request, token):
            if token and token.startswith("refreshtoken:"):
                return {"username": "refreshed_admin"}
            raise OAuthError("invalid_grant")

        server = make_server(
            generate_token=generate_token, check_refresh_token=check_refresh_token
        )
        server.add_authenticator("password", PasswordAuthenticator(verify_admin))

        # Act
        first = await server.authenticate(
            make_request(
                inputs={"grant_type": "password", "username": "admin", "password": "1234"}
            )
        )
        second = await server.authenticate(
            make_request(
                inputs={
                    "grant_type": "refresh_token",
                    "refresh_token": first["refresh_token"],
                }
            )
        )

        # Assert
        assert first["access_token"] == "token:admin"
        assert first["refresh_token"] == "refreshtoken:admin"
        assert second["access_token"] == "token:refreshed_admin"
        assert second["token_type"] == "Bearer"


class TestErrorPropagation:
    async def test_unexpected_hook_errors_are_not_wrapped(
        self, make_server, make_request
    ):
        # Arrange
        failure = RuntimeError("database unavailable")
        server = make_server(generate_token=AsyncMock(side_effect=failure))
        server.add_authenticator("custom", CallbackAuthenticator(AsyncMock()))

        # Act & Assert
        with pytest.raises(RuntimeError) as exc_info:
            await server.authenticate(make_request(inputs={"grant_type": "custom"}))
        assert exc_info.value is failure

    async def test_authenticator_oauth_errors_pass_through(
        self, make_server, make_request
    ):
        # Arrange
        error = OAuthError("invalid_scope", status=403, description="No admin scope")
        server = make_server()
        server.add_authenticator(
            "custom", CallbackAuthenticator(AsyncMock(side_effect=error))
        )

        # Act & Assert
        with pytest.raises(OAuthError) as exc_info:
            await server.authenticate(make_request(inputs={"grant_type": "custom"}))
        assert exc_info.value is error
        assert exc_info.value.status == 403
