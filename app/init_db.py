import logging
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel

from app.core.errors import MigrationError
from app.database import engine
import app.models.chat  # noqa
import app.models.chat_message  # noqa
import app.models.project  # noqa
import app.models.image  # noqa
import app.models.user_request  # noqa

logger = logging.getLogger(__name__)


def create_db_and_tables(target: Optional[Engine] = None) -> None:
    """Create missing tables and indexes; running it again changes nothing."""
    if target is None:
        target = engine
    try:
        SQLModel.metadata.create_all(target)
    except SQLAlchemyError as exc:
        raise MigrationError(f"schema migration failed: {exc}") from exc
    logger.info("Database schema is up to date (%s)", target.url.render_as_string(hide_password=True))


if __name__ == "__main__":
    create_db_and_tables()
