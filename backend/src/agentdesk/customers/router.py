"""Customer and customer-note resource routers."""

from agentdesk.customers.service import CustomerNoteService, CustomerService
from agentdesk.resources.router import build_resource_router

customers_router = build_resource_router(
    CustomerService, prefix="/api/customers", tags=["customers"], photo_folder="customers"
)
notes_router = build_resource_router(
    CustomerNoteService, prefix="/api/customer-notes", tags=["customer-notes"]
)
