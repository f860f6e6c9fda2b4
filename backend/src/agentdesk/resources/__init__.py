"""Generic resource layer: contract, query parameters, service and router factory."""

from agentdesk.resources.contract import ResourceMixin
from agentdesk.resources.pagination import Page
from agentdesk.resources.params import QueryParams
from agentdesk.resources.service import ResourceService

__all__ = [
    "Page",
    "QueryParams",
    "ResourceMixin",
    "ResourceService",
]
