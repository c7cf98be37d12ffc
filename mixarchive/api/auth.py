import os
import logging
import secrets
from fastapi import HTTPException, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

logger = logging.getLogger(__name__)

# Bearer token guarding the /invocations endpoints.
# No INVOKE_TOKEN must fail closed (deny by default).
security = HTTPBearer()


def require_invoke_token(creds: HTTPAuthorizationCredentials = Security(security)):
    token = creds.credentials if creds is not None else None
    expected = os.getenv("INVOKE_TOKEN")
    if not expected:
        logger.error("INVOKE_TOKEN not set - invocation endpoints are disabled")
        raise HTTPException(status_code=503, detail="INVOKE_TOKEN not configured")
    if not secrets.compare_digest(token or "", expected):
        raise HTTPException(status_code=401, detail="Unauthorized")
    return True
