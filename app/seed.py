"""
CLI entrypoint for loading demo users into a development database:

  SEED_ENABLED=true python -m app.seed
"""

import logging
import sys

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.core.errors import ForbiddenError
from app.services.seed import run_seed

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Replace all users with the demo set."""
    settings = get_settings()
    db = SessionLocal()
    try:
        inserted = run_seed(db, settings)
        logger.info("Seed completed: users_inserted=%s", inserted)
        return 0
    except ForbiddenError:
        logger.error("Seeding refused: requires APP_ENV=dev and SEED_ENABLED=true")
        return 1
    except Exception as e:
        db.rollback()
        logger.exception("Seed job failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
