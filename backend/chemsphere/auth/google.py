"""Google ID token verification.

The browser obtains an ID token from Google Identity Services and posts
it to /api/auth/google. We validate it against Google's tokeninfo
endpoint and check that it was minted for our client id.
"""

import logging

import httpx
from fastapi import HTTPException, status

from chemsphere.config import settings

logger = logging.getLogger(__name__)

_VALID_ISSUERS = {"accounts.google.com", "https://accounts.google.com"}


async def verify_google_id_token(id_token: str) -> dict:
    """Return the verified token claims (`sub`, `email`, `name`, ...).

    Raises HTTP 503 when Google sign-in is not configured and HTTP 401
    for any token Google does not vouch for.
    """
    if not settings.google_client_id:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Google sign-in is not configured",
        )

    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(
                settings.google_tokeninfo_url, params={"id_token": id_token}
            )
    except httpx.HTTPError as e:
        logger.error("Google tokeninfo request failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not reach Google to verify sign-in",
        )

    if response.status_code != 200:
        raise HTTPException(status_code=401, detail="Invalid Google credential")

    claims = response.json()
    if claims.get("aud") != settings.google_client_id:
        raise HTTPException(status_code=401, detail="Google credential issued for another client")
    if claims.get("iss") not in _VALID_ISSUERS:
        raise HTTPException(status_code=401, detail="Invalid Google credential issuer")
    if str(claims.get("email_verified", "")).lower() != "true" or not claims.get("email"):
        raise HTTPException(status_code=401, detail="Google account email is not verified")
    return claims
