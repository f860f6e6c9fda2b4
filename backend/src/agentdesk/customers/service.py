"""Customer and customer-note resource services.

CustomerService adds:
  - keyword search across the customer's own fields OR its notes' bodies
  - virtual orderings ``agent_name`` and ``notes_count``
  - ``unassigned=true`` filter for customers without an agent
"""

from __future__ import annotations

from typing import Any, Mapping

from sqlalchemy import func, select
from sqlalchemy.orm import Query, aliased

from agentdesk.customers.models import Customer, CustomerNote
from agentdesk.resources.params import is_truthy
from agentdesk.resources.service import ResourceService
from agentdesk.users.models import User


def order_by_agent_name(query: Query, direction: str) -> Query:
    agent = aliased(User, name="ordering_agent")
    query = query.outerjoin(agent, Customer.agent_id == agent.id)
    return query.order_by(agent.name.desc() if direction == "desc" else agent.name.asc())


def order_by_notes_count(query: Query, direction: str) -> Query:
    notes_count = (
        select(func.count(CustomerNote.id))
        .where(CustomerNote.customer_id == Customer.id)
        .correlate(Customer)
        .scalar_subquery()
    )
    return query.order_by(notes_count.desc() if direction == "desc" else notes_count.asc())


class CustomerService(ResourceService):
    model = Customer
    orderings = {
        "agent_name": order_by_agent_name,
        "notes_count": order_by_notes_count,
    }
    relation_search = {"notes": ("body",)}

    def apply_filters(self, query: Query, data: Mapping[str, Any]) -> Query:
        query = super().apply_filters(query, data)
        if is_truthy(data.get("unassigned")):
            query = query.filter(Customer.agent_id.is_(None))
        return query


class CustomerNoteService(ResourceService):
    model = CustomerNote
