# leavedesk/seed.py
"""
Run: python -m leavedesk.seed
Seeds the configured storage with sample users and leave requests.
"""
from datetime import date, datetime

from .schemas import LeaveRequest, User

DEMO_USERS = [
    User(
        id="emp1",
        email="john.doe@company.com",
        name="John Doe",
        role="employee",
        department="Engineering",
        employee_id="EMP001",
        created_at=datetime(2024, 1, 1),
    ),
    User(
        id="emp2",
        email="alice.smith@company.com",
        name="Alice Smith",
        role="employee",
        department="Marketing",
        employee_id="EMP002",
        created_at=datetime(2024, 1, 1),
    ),
    User(
        id="hr1",
        email="sarah.wilson@company.com",
        name="Sarah Wilson",
        role="hr",
        department="Human Resources",
        created_at=datetime(2024, 1, 1),
    ),
]

DEMO_LEAVE_REQUESTS = [
    LeaveRequest(
        id="req1",
        user_id="emp1",
        employee_id="EMP001",
        employee_name="John Doe",
        department="Engineering",
        leave_type="annual",
        from_date=date(2024, 12, 25),
        to_date=date(2024, 12, 29),
        reason="Family vacation during holidays",
        status="pending",
        submitted_at=datetime(2024, 12, 15),
        updated_at=datetime(2024, 12, 15),
    ),
    LeaveRequest(
        id="req2",
        user_id="emp1",
        employee_id="EMP001",
        employee_name="John Doe",
        department="Engineering",
        leave_type="sick",
        from_date=date(2024, 12, 10),
        to_date=date(2024, 12, 12),
        reason="Fever and flu symptoms",
        status="approved",
        approved_by="Sarah Wilson",
        submitted_at=datetime(2024, 12, 9),
        updated_at=datetime(2024, 12, 10),
    ),
    LeaveRequest(
        id="req3",
        user_id="emp2",
        employee_id="EMP002",
        employee_name="Alice Smith",
        department="Marketing",
        leave_type="personal",
        from_date=date(2024, 12, 18),
        to_date=date(2024, 12, 20),
        reason="Personal matters",
        status="pending",
        submitted_at=datetime(2024, 12, 16),
        updated_at=datetime(2024, 12, 16),
    ),
]


def seed(storage, overwrite: bool = True) -> dict:
    """
    Store the demo records. With overwrite off, records already present are
    left alone so decisions made on them survive a restart.
    """
    counts = {"users": 0, "leaveRequests": 0}
    for user in DEMO_USERS:
        if overwrite or storage.get_user(user.id) is None:
            storage.put_user(user)
            counts["users"] += 1
    for request in DEMO_LEAVE_REQUESTS:
        if overwrite or storage.get_leave_request(request.id) is None:
            storage.put_leave_request(request)
            counts["leaveRequests"] += 1
    return counts


if __name__ == "__main__":
    import logging

    from .config import settings
    from .logging_config import setup_logging
    from .storage import create_storage

    setup_logging()
    storage = create_storage(settings)
    counts = seed(storage)
    logging.getLogger("leavedesk").info("Seeded %s storage: %s", storage.name, counts)
    storage.close()
