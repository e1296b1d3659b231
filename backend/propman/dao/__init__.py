"""Data Access Objects."""

from propman.dao.base import BaseDAO
from propman.dao.organization import OrganizationDAO, OrganizationUserDAO
from propman.dao.user import UserDAO

__all__ = ["BaseDAO", "OrganizationDAO", "OrganizationUserDAO", "UserDAO"]
