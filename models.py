import re
from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import UniqueConstraint

from extensions import db
from werkzeug.security import generate_password_hash, check_password_hash


class RoleEnum(str, Enum):
    super_admin = "SuperAdmin"
    admin = "Admin"
    employee = "Employee"


ADMIN_ROLES: tuple[RoleEnum, ...] = (RoleEnum.super_admin, RoleEnum.admin)


class EmployeeStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class Department(db.Model):
    __tablename__ = "department"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    head = db.Column(db.String(120))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:  # pragma: no cover - representation helper
        return f"<Department {self.name}>"


class User(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(80), nullable=False)
    last_name = db.Column(db.String(80), nullable=False, default="")
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(db.Enum(RoleEnum), nullable=False, default=RoleEnum.employee)
    department_id = db.Column(db.Integer, db.ForeignKey("department.id"), nullable=True, index=True)
    joining_date = db.Column(db.Date)
    dob = db.Column(db.Date)
    mobile = db.Column(db.String(30))
    salary = db.Column(db.Numeric(12, 2))
    status = db.Column(db.Enum(EmployeeStatus), nullable=False, default=EmployeeStatus.ACTIVE)
    active = db.Column(db.Boolean, default=True, nullable=False)
    reset_token_hash = db.Column(db.String(256))
    reset_token_expires_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    department = db.relationship("Department", backref="employees")

    def set_password(self, pw): self.password_hash = generate_password_hash(pw)
    def check_password(self, pw): return check_password_hash(self.password_hash, pw)

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES


class Holiday(db.Model):
    __tablename__ = "holiday"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    date = db.Column(db.Date, nullable=False, unique=True, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)


class Event(db.Model):
    __tablename__ = "event"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    date = db.Column(db.Date, nullable=False, index=True)
    description = db.Column(db.Text)
    created_by_id = db.Column(db.Integer, db.ForeignKey("user.id"))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    created_by = db.relationship("User", foreign_keys=[created_by_id])


class SaturdaySetting(db.Model):
    """Mark an individual Saturday as weekend or working day."""

    __tablename__ = "saturday_setting"

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.Date, nullable=False, unique=True, index=True)
    is_weekend = db.Column(db.Boolean, nullable=False, default=False)
    year = db.Column(db.Integer, nullable=False, index=True)
    month = db.Column(db.Integer, nullable=False)  # 1-12
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class AlternateSaturday(db.Model):
    """Working Saturday ordinals (1st..5th) for a calendar month."""

    __tablename__ = "alternate_saturday"
    __table_args__ = (
        UniqueConstraint("year", "month", name="uq_alternate_saturday_year_month"),
    )

    id = db.Column(db.Integer, primary_key=True)
    year = db.Column(db.Integer, nullable=False)
    month = db.Column(db.Integer, nullable=False)
    working_saturdays = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class LeaveType(str, Enum):
    VACATION = "Vacation"
    SICK = "Sick"
    PERSONAL = "Personal"


class LeaveStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class Leave(db.Model):
    __tablename__ = "leave"

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    leave_type = db.Column(db.Enum(LeaveType), nullable=False, default=LeaveType.VACATION)
    reason = db.Column(db.Text)
    is_half_day = db.Column(db.Boolean, nullable=False, default=False)
    status = db.Column(db.Enum(LeaveStatus), nullable=False, default=LeaveStatus.PENDING, index=True)
    comments = db.Column(db.Text)
    reviewed_by_id = db.Column(db.Integer, db.ForeignKey("user.id"))
    reviewed_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    employee = db.relationship(
        "User",
        foreign_keys=[employee_id],
        backref=db.backref("leaves", cascade="all,delete-orphan"),
    )
    reviewed_by = db.relationship("User", foreign_keys=[reviewed_by_id])


class DailyReport(db.Model):
    """End-of-day work report filed by an employee."""

    __tablename__ = "daily_report"

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    report_date = db.Column(db.Date, nullable=False, index=True)
    description = db.Column(db.Text, nullable=False)
    start_time = db.Column(db.String(5), nullable=False)  # HH:MM
    end_time = db.Column(db.String(5), nullable=False)
    break_duration = db.Column(db.Integer, nullable=False, default=0)  # minutes
    total_hours = db.Column(db.String(8))
    working_hours = db.Column(db.String(8))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    employee = db.relationship(
        "User",
        backref=db.backref("reports", cascade="all,delete-orphan"),
    )


class BreakAction(str, Enum):
    BREAK_IN = "Break In"
    BREAK_OUT = "Break Out"


class Break(db.Model):
    """One break-in or break-out punch."""

    __tablename__ = "break_record"

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    action = db.Column(db.Enum(BreakAction), nullable=False)
    reason = db.Column(db.String(255))
    timestamp = db.Column(db.DateTime, default=datetime.now, nullable=False)
    date = db.Column(db.Date, nullable=False, index=True)
    added_by_id = db.Column(db.Integer, db.ForeignKey("user.id"))

    employee = db.relationship(
        "User",
        foreign_keys=[employee_id],
        backref=db.backref("breaks", cascade="all,delete-orphan"),
    )
    added_by = db.relationship("User", foreign_keys=[added_by_id])


class Priority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class Ticket(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    priority = db.Column(db.Enum(Priority), nullable=False, default=Priority.MEDIUM)
    due_date = db.Column(db.Date)

    employee_id = db.Column(db.Integer, db.ForeignKey("user.id"), index=True)
    employee = db.relationship("User", foreign_keys=[employee_id])

    created_by_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)
    created_by = db.relationship("User", foreign_keys=[created_by_id])

    progress_entries = db.relationship(
        "TicketProgress",
        backref="ticket",
        cascade="all,delete-orphan",
        order_by=lambda: (TicketProgress.date, TicketProgress.id),
    )

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def last_progress(self):
        return self.progress_entries[-1] if self.progress_entries else None

    @property
    def current_progress(self) -> int:
        last = self.last_progress
        return int(last.progress) if last is not None else 0


class TicketProgress(db.Model):
    __tablename__ = "ticket_progress"

    id = db.Column(db.Integer, primary_key=True)
    ticket_id = db.Column(db.Integer, db.ForeignKey("ticket.id"), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False)
    working_hours = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    progress = db.Column(db.Integer, nullable=False)
    updated_by_id = db.Column(db.Integer, db.ForeignKey("user.id"))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    updated_by = db.relationship("User")


class TodoStatus(str, Enum):
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class Todo(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    priority = db.Column(db.Enum(Priority), nullable=False, default=Priority.MEDIUM)
    status = db.Column(db.Enum(TodoStatus), nullable=False, default=TodoStatus.PENDING, index=True)
    due_date = db.Column(db.Date)

    employee_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    employee = db.relationship("User", foreign_keys=[employee_id])

    created_by_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)
    created_by = db.relationship("User", foreign_keys=[created_by_id])

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Client(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(120))
    phone = db.Column(db.String(30))
    company = db.Column(db.String(200))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)


class ProjectStatus(str, Enum):
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    ON_HOLD = "On Hold"
    COMPLETED = "Completed"


project_member = db.Table(
    "project_member",
    db.Column("project_id", db.Integer, db.ForeignKey("project.id"), primary_key=True),
    db.Column("user_id", db.Integer, db.ForeignKey("user.id"), primary_key=True),
)


class Project(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    client_id = db.Column(db.Integer, db.ForeignKey("client.id"), index=True)
    start_date = db.Column(db.Date)
    end_date = db.Column(db.Date)
    status = db.Column(db.Enum(ProjectStatus), nullable=False, default=ProjectStatus.NOT_STARTED)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    client = db.relationship("Client", backref="projects")
    members = db.relationship("User", secondary=project_member, lazy="selectin")


class TeamStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


team_member = db.Table(
    "team_member",
    db.Column("team_id", db.Integer, db.ForeignKey("team.id"), primary_key=True),
    db.Column("user_id", db.Integer, db.ForeignKey("user.id"), primary_key=True),
)


class Team(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    manager_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    project_id = db.Column(db.Integer, db.ForeignKey("project.id"), index=True)
    status = db.Column(db.Enum(TeamStatus), nullable=False, default=TeamStatus.ACTIVE)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    manager = db.relationship("User", foreign_keys=[manager_id])
    project = db.relationship("Project", backref="teams")
    members = db.relationship("User", secondary=team_member, lazy="selectin")


class InvoiceStatus(str, Enum):
    PAID = "Paid"
    UNPAID = "Unpaid"
    PENDING = "Pending"


class Invoice(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    invoice_no = db.Column(db.String(20), nullable=False, unique=True)
    client_id = db.Column(db.Integer, db.ForeignKey("client.id"), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False)
    type = db.Column(db.String(60))
    status = db.Column(db.Enum(InvoiceStatus), nullable=False, default=InvoiceStatus.UNPAID)
    amount = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal("0"))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    client = db.relationship("Client", backref="invoices")


class Payment(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    payment_no = db.Column(db.String(20), nullable=False, unique=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    reason = db.Column(db.String(255))
    date = db.Column(db.Date, nullable=False)
    type = db.Column(db.String(60))
    amount = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal("0"))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    employee = db.relationship("User")


class ExpenseStatus(str, Enum):
    PAID = "Paid"
    PENDING = "Pending"
    REJECTED = "Rejected"


class Expense(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    expense_no = db.Column(db.String(20), nullable=False, unique=True)
    item = db.Column(db.String(200), nullable=False)
    order_by = db.Column(db.String(120))
    source = db.Column(db.String(120))
    date = db.Column(db.Date, nullable=False)
    status = db.Column(db.Enum(ExpenseStatus), nullable=False, default=ExpenseStatus.PENDING)
    type = db.Column(db.String(60))
    amount = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal("0"))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)


class Blog(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), nullable=False, unique=True, index=True)
    content = db.Column(db.Text, nullable=False, default="")
    excerpt = db.Column(db.String(500))
    is_published = db.Column(db.Boolean, nullable=False, default=True)
    author_id = db.Column(db.Integer, db.ForeignKey("user.id"))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    author = db.relationship("User")


_SLUG_STRIP_PATTERN = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    slug = _SLUG_STRIP_PATTERN.sub("-", (value or "").lower()).strip("-")
    return slug or "post"


def unique_blog_slug(title: str, *, exclude_id: int | None = None) -> str:
    """Return a slug for ``title`` that no other blog uses."""

    base = slugify(title)
    candidate = base
    suffix = 2
    while True:
        query = Blog.query.filter(Blog.slug == candidate)
        if exclude_id is not None:
            query = query.filter(Blog.id != exclude_id)
        if query.first() is None:
            return candidate
        candidate = f"{base}-{suffix}"
        suffix += 1


def next_sequence_code(column, prefix: str, *, width: int = 4) -> str:
    """Build the next ``PREFIX-0001`` style code for ``column``."""

    pattern = f"{prefix}-%"
    values = db.session.query(column).filter(column.like(pattern)).all()
    highest = 0
    for (value,) in values:
        tail = (value or "")[len(prefix) + 1:]
        if tail.isdigit():
            highest = max(highest, int(tail))
    return f"{prefix}-{highest + 1:0{width}d}"
