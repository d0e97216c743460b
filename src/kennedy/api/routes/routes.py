from fastapi import APIRouter

from kennedy.api.routes.bot import router as bot_router
from kennedy.api.routes.drive import router as drive_router
from kennedy.api.routes.students import router as students_router

router = APIRouter()

# The upload/download aliases under /students and /documents live on the
# drive router, so it is registered before the students router.
router.include_router(drive_router)
router.include_router(students_router)
router.include_router(bot_router)
