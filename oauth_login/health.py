from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError


def database_ready(engine: Engine) -> bool:
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        return False


def readiness_state(engine: Engine) -> tuple[bool, dict[str, bool]]:
    checks = {"database": database_ready(engine)}
    return all(checks.values()), checks
