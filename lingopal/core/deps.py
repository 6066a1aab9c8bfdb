"""
Dependency Injection

FastAPI dependencies for routes.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lingopal.core.token import CurrentUserDep
from lingopal.infra.db import get_db

# Type aliases for common dependencies
SessionDep = Annotated[AsyncSession, Depends(get_db)]

__all__ = ["SessionDep", "CurrentUserDep"]
