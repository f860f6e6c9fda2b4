"""User and agent resource routers."""

from agentdesk.resources.router import build_resource_router
from agentdesk.users.service import AgentService, UserService

users_router = build_resource_router(
    UserService, prefix="/api/users", tags=["users"], photo_folder="users"
)
agents_router = build_resource_router(
    AgentService, prefix="/api/agents", tags=["agents"], photo_folder="agents"
)
