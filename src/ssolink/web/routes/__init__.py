from fastapi import APIRouter

from ssolink.web.routes.auth import router as auth_router
from ssolink.web.routes.identities import router as identities_router

router = APIRouter()
router.include_router(auth_router)
router.include_router(identities_router)

__all__ = ["router"]
