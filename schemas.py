from marshmallow import Schema, fields

from models import (
    BreakAction,
    EmployeeStatus,
    ExpenseStatus,
    InvoiceStatus,
    LeaveStatus,
    LeaveType,
    Priority,
    ProjectStatus,
    RoleEnum,
    TeamStatus,
    TodoStatus,
)


class DepartmentSchema(Schema):
    id = fields.Int(data_key="_id")
    name = fields.Str()
    head = fields.Str(allow_none=True)
    created_at = fields.DateTime(data_key="createdAt")


class UserSummarySchema(Schema):
    id = fields.Int(data_key="_id")
    first_name = fields.Str(data_key="firstName")
    last_name = fields.Str(data_key="lastName")
    email = fields.Str()
    role = fields.Enum(RoleEnum, by_value=True)


class UserSchema(UserSummarySchema):
    department = fields.Nested(DepartmentSchema, only=("id", "name"), allow_none=True)
    joining_date = fields.Date(data_key="joiningDate", allow_none=True)
    dob = fields.Date(allow_none=True)
    mobile = fields.Str(data_key="mobile1", allow_none=True)
    salary = fields.Float(allow_none=True)
    status = fields.Enum(EmployeeStatus, by_value=True)
    active = fields.Bool()
    created_at = fields.DateTime(data_key="createdAt")


class HolidaySchema(Schema):
    id = fields.Int(data_key="_id")
    name = fields.Str()
    date = fields.Date()
    created_at = fields.DateTime(data_key="createdAt")


class EventSchema(Schema):
    id = fields.Int(data_key="_id")
    name = fields.Str()
    date = fields.Date()
    description = fields.Str(allow_none=True)
    created_at = fields.DateTime(data_key="createdAt")


class SaturdaySettingSchema(Schema):
    id = fields.Int(data_key="_id")
    date = fields.Date()
    is_weekend = fields.Bool(data_key="isWeekend")
    year = fields.Int()
    month = fields.Int()
    updated_at = fields.DateTime(data_key="updatedAt", allow_none=True)


class AlternateSaturdaySchema(Schema):
    id = fields.Int(data_key="_id")
    month = fields.Int()
    year = fields.Int()
    working_saturdays = fields.List(fields.Int(), data_key="workingSaturdays")
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")


class LeaveSchema(Schema):
    id = fields.Int(data_key="_id")
    employee = fields.Nested(UserSummarySchema)
    start_date = fields.Date(data_key="startDate")
    end_date = fields.Date(data_key="endDate")
    leave_type = fields.Enum(LeaveType, by_value=True, data_key="leaveType")
    reason = fields.Str(allow_none=True)
    is_half_day = fields.Bool(data_key="isHalfDay")
    status = fields.Enum(LeaveStatus, by_value=True)
    comments = fields.Str(allow_none=True)
    reviewed_by = fields.Nested(UserSummarySchema, data_key="reviewedBy", allow_none=True)
    reviewed_at = fields.DateTime(data_key="reviewedAt", allow_none=True)
    created_at = fields.DateTime(data_key="createdAt")


class DailyReportSchema(Schema):
    id = fields.Int(data_key="_id")
    employee = fields.Nested(UserSummarySchema)
    report_date = fields.Date(data_key="reportDate")
    description = fields.Str()
    start_time = fields.Str(data_key="startTime")
    end_time = fields.Str(data_key="endTime")
    break_duration = fields.Int(data_key="breakDuration")
    total_hours = fields.Str(data_key="totalHours")
    working_hours = fields.Str(data_key="todaysWorkingHours")
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")


class BreakSchema(Schema):
    id = fields.Int(data_key="_id")
    employee = fields.Nested(UserSummarySchema, only=("id", "first_name", "last_name"))
    action = fields.Enum(BreakAction, by_value=True)
    reason = fields.Str(allow_none=True)
    timestamp = fields.DateTime()
    date = fields.Date()
    added_by = fields.Nested(
        UserSummarySchema,
        only=("id", "role", "first_name", "last_name"),
        data_key="addedBy",
        allow_none=True,
    )


class TicketProgressSchema(Schema):
    id = fields.Int(data_key="_id")
    date = fields.Date()
    working_hours = fields.Float(data_key="workingHours")
    progress = fields.Int()
    updated_by = fields.Nested(UserSummarySchema, data_key="updatedBy", allow_none=True)


class TicketSchema(Schema):
    id = fields.Int(data_key="_id")
    title = fields.Str()
    description = fields.Str(allow_none=True)
    priority = fields.Enum(Priority, by_value=True)
    due_date = fields.Date(data_key="dueDate", allow_none=True)
    employee = fields.Nested(UserSummarySchema, allow_none=True)
    created_by = fields.Nested(UserSummarySchema, data_key="createdBy")
    progress_entries = fields.List(fields.Nested(TicketProgressSchema), data_key="progress")
    current_progress = fields.Int(data_key="currentProgress")
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")


class TodoSchema(Schema):
    id = fields.Int(data_key="_id")
    title = fields.Str()
    description = fields.Str(allow_none=True)
    priority = fields.Enum(Priority, by_value=True)
    status = fields.Enum(TodoStatus, by_value=True)
    due_date = fields.Date(data_key="dueDate", allow_none=True)
    employee = fields.Nested(UserSummarySchema)
    created_by = fields.Nested(UserSummarySchema, only=("id", "first_name", "last_name"), data_key="createdBy")
    created_at = fields.DateTime(data_key="createdAt")


class ClientSchema(Schema):
    id = fields.Int(data_key="_id")
    name = fields.Str()
    email = fields.Str(allow_none=True)
    phone = fields.Str(allow_none=True)
    company = fields.Str(allow_none=True)
    created_at = fields.DateTime(data_key="createdAt")


class ProjectSchema(Schema):
    id = fields.Int(data_key="_id")
    name = fields.Str()
    description = fields.Str(allow_none=True)
    client = fields.Nested(ClientSchema, only=("id", "name", "email"), allow_none=True)
    start_date = fields.Date(data_key="startDate", allow_none=True)
    end_date = fields.Date(data_key="endDate", allow_none=True)
    status = fields.Enum(ProjectStatus, by_value=True)
    members = fields.List(fields.Nested(UserSummarySchema))
    created_at = fields.DateTime(data_key="createdAt")


class TeamSchema(Schema):
    id = fields.Int(data_key="_id")
    name = fields.Str()
    manager = fields.Nested(UserSummarySchema, only=("id", "first_name", "last_name", "email"))
    members = fields.List(
        fields.Nested(UserSummarySchema, only=("id", "first_name", "last_name", "email")),
        data_key="teamMembers",
    )
    project = fields.Nested(ProjectSchema, only=("id", "name", "client"), allow_none=True)
    status = fields.Enum(TeamStatus, by_value=True)
    created_at = fields.DateTime(data_key="createdAt")


class InvoiceSchema(Schema):
    id = fields.Int(data_key="_id")
    invoice_no = fields.Str(data_key="invoiceNo")
    client = fields.Nested(ClientSchema, only=("id", "name", "email"))
    date = fields.Date()
    type = fields.Str(allow_none=True)
    status = fields.Enum(InvoiceStatus, by_value=True)
    amount = fields.Float()
    created_at = fields.DateTime(data_key="createdAt")


class PaymentSchema(Schema):
    id = fields.Int(data_key="_id")
    payment_no = fields.Str(data_key="paymentId")
    employee = fields.Nested(UserSummarySchema)
    reason = fields.Str(allow_none=True)
    date = fields.Date()
    type = fields.Str(allow_none=True)
    amount = fields.Float()
    created_at = fields.DateTime(data_key="createdAt")


class ExpenseSchema(Schema):
    id = fields.Int(data_key="_id")
    expense_no = fields.Str(data_key="expenseId")
    item = fields.Str()
    order_by = fields.Str(data_key="orderBy", allow_none=True)
    source = fields.Str(data_key="from", allow_none=True)
    date = fields.Date()
    status = fields.Enum(ExpenseStatus, by_value=True)
    type = fields.Str(allow_none=True)
    amount = fields.Float()
    created_at = fields.DateTime(data_key="createdAt")


class BlogSchema(Schema):
    id = fields.Int(data_key="_id")
    title = fields.Str()
    slug = fields.Str()
    content = fields.Str()
    excerpt = fields.Str(allow_none=True)
    is_published = fields.Bool(data_key="isPublished")
    author = fields.Nested(UserSummarySchema, allow_none=True)
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")


class DayCellSchema(Schema):
    date = fields.Date()
    value = fields.Str()
    status = fields.Str()
    leave = fields.Float()
    extra = fields.Float()


class EmployeeStatisticsSchema(Schema):
    employee_id = fields.Int(data_key="employeeId")
    name = fields.Str()
    cells = fields.List(fields.Nested(DayCellSchema))
    leave_taken = fields.Float(data_key="leaveTaken")
    extra_working_days = fields.Float(data_key="extraWorkingDays")
    paid_leave = fields.Float(data_key="paidLeave")
    deduction = fields.Float()
    salary_days = fields.Float(data_key="salaryDays")
