import hmac
import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from config.settings import settings

logger = logging.getLogger(__name__)

# auto_error=False: a missing header is reported as 401 below, not 403
security = HTTPBearer(auto_error=False)


async def verify_cron_secret(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> None:
    """
    Dependency guarding cron and admin endpoints with the shared CRON_SECRET

    Usage in route:
        @router.post("/cron/enrich", dependencies=[Depends(verify_cron_secret)])
        async def enrich():
            ...

    Requires:
        Authorization: Bearer <CRON_SECRET>

    Raises:
        HTTPException 500: If CRON_SECRET is not configured
        HTTPException 401: If the header is missing or the secret doesn't match
    """
    cron_secret = settings.CRON_SECRET
    if not cron_secret:
        logger.error("CRON_SECRET not configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server misconfiguration",
        )

    token = credentials.credentials if credentials else ""
    if not hmac.compare_digest(token.encode(), cron_secret.encode()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
