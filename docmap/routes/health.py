from fastapi import APIRouter
import subprocess

from docmap.schemas.common import HealthResponse

router = APIRouter()


def get_git_sha() -> str:
    """Get git SHA, fallback to 'unknown' if not in git repo."""
    try:
        return (
            subprocess.check_output(["git", "rev-parse", "HEAD"]).decode().strip()[:7]
        )
    except (subprocess.CalledProcessError, FileNotFoundError):
        return "unknown"


@router.get("/health", response_model=HealthResponse)
async def health_check():
    return {
        "status": "ok",
        "name": "docmap-extraction-service",
        "version": "0.1.0",
        "git_sha": get_git_sha(),
    }
