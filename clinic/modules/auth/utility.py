from fastapi import Depends, HTTPException
from typing import Dict, Iterable
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import jwt
import logging
from clinic.modules.auth.repository import AuthRepository
from clinic.core.config import JWT_ALGORITHM, JWT_SECRET

logger = logging.getLogger(__name__)

security = HTTPBearer()

PARENT = "parent"
THERAPIST = "therapist"
ADMIN = "admin"


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security), auth_repo: AuthRepository = Depends()) -> Dict:
    try:
        token = credentials.credentials
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])

        user = await auth_repo.find_user_by_id(payload["sub"])
        if not user:
            raise HTTPException(status_code=401, detail="User not found")
        return user
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except (jwt.InvalidTokenError, KeyError):
        raise HTTPException(status_code=401, detail="Invalid token")


def require_role(current_user: Dict, roles: Iterable[str]):
    if current_user.get("role") not in roles:
        logger.warning(f"User {current_user.get('id')} with role {current_user.get('role')} denied")
        raise HTTPException(status_code=403, detail="Access denied")
