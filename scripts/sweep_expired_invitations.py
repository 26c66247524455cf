"""
Mark pending invitations past their deadline as expired.

Run periodically (cron, Kubernetes CronJob, pg_cron calling an equivalent
UPDATE). Validation and acceptance already treat overdue invitations as
expired, so the sweep only keeps stored statuses honest.
"""
import asyncio
import sys
from pathlib import Path

# Add src directory to path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))

import structlog  # noqa: E402

from api.v1.dependencies import get_invitation_service  # noqa: E402
from core.logging import setup_logging  # noqa: E402

logger = structlog.get_logger()


async def main() -> int:
    setup_logging()
    count = await get_invitation_service().sweep_expired()
    logger.info("invitation_sweep_completed", expired_count=count)
    return count


if __name__ == "__main__":
    asyncio.run(main())
