"""User and agent resource services.

UserService: every account, searchable by name/username/email, orderable by
the virtual field ``customer_count``. Plain ``password`` input is hashed into
password_hash; a raw password_hash is never accepted from callers.

AgentService: the same contract restricted to users with the agent role.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Query

from agentdesk.auth.security import hash_password
from agentdesk.customers.models import Customer
from agentdesk.resources.service import ResourceService
from agentdesk.users.models import ROLE_AGENT, ROLES, User

logger = logging.getLogger(__name__)


def order_by_customer_count(query: Query, direction: str) -> Query:
    """Order users by how many active customers are assigned to them."""
    customer_count = (
        select(func.count(Customer.id))
        .where(Customer.agent_id == User.id, Customer.deleted_at.is_(None))
        .correlate(User)
        .scalar_subquery()
    )
    return query.order_by(customer_count.desc() if direction == "desc" else customer_count.asc())


class UserService(ResourceService):
    model = User
    orderings = {"customer_count": order_by_customer_count}

    def _prepare(self, data: Mapping[str, Any], valid: dict[str, Any]) -> dict[str, Any]:
        valid.pop("password_hash", None)

        password = data.get("password")
        if isinstance(password, str) and password:
            valid["password_hash"] = hash_password(password)

        if "role" in valid and valid["role"] not in ROLES:
            logger.debug("Dropping unknown role %r", valid["role"])
            valid.pop("role")
        return valid

    def get_prepared_save_data(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return self._prepare(data, super().get_prepared_save_data(data))

    def get_prepared_update_data(self, data: Mapping[str, Any], resource: Any) -> dict[str, Any]:
        return self._prepare(data, super().get_prepared_update_data(data, resource))


class AgentService(UserService):
    """Users with the agent role. New records always get the agent role."""

    def base_query(self, relations: Sequence[str] = ()) -> Query:
        return super().base_query(relations).filter(User.role == ROLE_AGENT)

    def get_prepared_save_data(self, data: Mapping[str, Any]) -> dict[str, Any]:
        valid = super().get_prepared_save_data(data)
        if valid:
            valid["role"] = ROLE_AGENT
        return valid

    def get_prepared_update_data(self, data: Mapping[str, Any], resource: Any) -> dict[str, Any]:
        valid = super().get_prepared_update_data(data, resource)
        valid.pop("role", None)
        return valid
