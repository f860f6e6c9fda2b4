"""Seed the database with a demo admin, agents, customers and notes."""

from agentdesk.db.engine import SessionLocal, engine
from agentdesk.db.base import Base

# Import all models so create_all knows about them
import agentdesk.users.models  # noqa: F401
import agentdesk.customers.models  # noqa: F401

from agentdesk.auth.security import hash_password
from agentdesk.customers.models import Customer, CustomerNote
from agentdesk.users.models import ROLE_ADMIN, ROLE_AGENT, User

# Create tables
Base.metadata.create_all(engine)

db = SessionLocal()

# Check if already seeded
if db.query(User).count() > 0:
    print("Database already seeded. Skipping.")
    db.close()
    exit(0)

# --- Users ---
admin = User(
    name="Desk Admin", username="admin", email="admin@agentdesk.local",
    password_hash=hash_password("admin-password"), role=ROLE_ADMIN,
)
amara = User(
    name="Amara Okafor", username="amara", email="amara@agentdesk.local",
    password_hash=hash_password("agent-password"), role=ROLE_AGENT,
    phone="+1 905 555 0101",
)
bruno = User(
    name="Bruno Tavares", username="bruno", email="bruno@agentdesk.local",
    password_hash=hash_password("agent-password"), role=ROLE_AGENT,
    phone="+1 905 555 0102",
)
db.add_all([admin, amara, bruno])
db.flush()

# --- Customers ---
customers = [
    Customer(name="Maple & Main Bakery", email="hello@maplemain.example",
             phone="905 555 0201", address="12 King St W, Hamilton", agent=amara),
    Customer(name="Peak Fitness Studio", email="front@peakfit.example",
             phone="905 555 0202", address="88 Locke St S, Hamilton", agent=amara),
    Customer(name="Birchwood Dental", email="office@birchwood.example",
             phone="905 555 0203", address="401 Brant St, Burlington", agent=bruno),
    Customer(name="Lakeside Auto Care", email="service@lakeside.example",
             phone="905 555 0204", address="2 Lakeshore Rd, Burlington"),
]
db.add_all(customers)
db.flush()

# --- Notes ---
notes = [
    CustomerNote(customer=customers[0], body="Wants weekend delivery slots before the holidays."),
    CustomerNote(customer=customers[0], body="Invoice for October paid by cheque."),
    CustomerNote(customer=customers[1], body="Asked about a corporate membership package."),
    CustomerNote(customer=customers[2], body="Renewal call booked for next quarter."),
]
db.add_all(notes)
db.commit()

print(f"Seeded {db.query(User).count()} users, {len(customers)} customers, {len(notes)} notes.")
print("Agent login: amara / agent-password")
db.close()
