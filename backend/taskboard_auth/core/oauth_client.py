"""OAuth HTTP client: token exchange and userinfo fetching.

Module-level functions so tests can patch them at
``taskboard_auth.core.oauth_client``.
"""

from typing import Any

import httpx

from taskboard_auth.core.oauth import get_provider_config

# HTTP client timeout for OAuth token exchange and userinfo
_OAUTH_HTTP_TIMEOUT = 10.0


async def exchange_code_for_tokens(
    *,
    provider: str,
    client_id: str,
    client_secret: str,
    code: str,
    code_verifier: str,
    redirect_uri: str,
) -> dict[str, Any]:
    """Exchange authorization code for OAuth tokens.

    Args:
        provider: Provider name.
        client_id: OAuth client id.
        client_secret: OAuth client secret.
        code: Authorization code from callback.
        code_verifier: PKCE code verifier.
        redirect_uri: Callback URL used in initiation.

    Returns:
        Token response dict (access_token, id_token, etc.).

    Raises:
        httpx.HTTPError: If the token exchange fails.
    """
    config = get_provider_config(provider)

    async with httpx.AsyncClient() as client:
        resp = await client.post(
            config.token_url,
            data={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": redirect_uri,
                "client_id": client_id,
                "client_secret": client_secret,
                "code_verifier": code_verifier,
            },
            timeout=_OAUTH_HTTP_TIMEOUT,
        )
        resp.raise_for_status()
        result: dict[str, Any] = resp.json()
        return result


async def fetch_userinfo(
    *,
    provider: str,
    access_token: str,
) -> dict[str, Any]:
    """Fetch user info from the OAuth provider.

    Args:
        provider: Provider name.
        access_token: OAuth access token.

    Returns:
        User info dict. For Google: id, email, verified_email, name, picture.

    Raises:
        httpx.HTTPError: If the userinfo request fails.
    """
    config = get_provider_config(provider)

    async with httpx.AsyncClient() as client:
        resp = await client.get(
            config.userinfo_url,
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=_OAUTH_HTTP_TIMEOUT,
        )
        resp.raise_for_status()
        result: dict[str, Any] = resp.json()
        return result
