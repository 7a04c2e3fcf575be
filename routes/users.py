"""Employee records and role administration."""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from sqlalchemy import asc, func, or_
from sqlalchemy.exc import IntegrityError

from extensions import db
from models import Department, EmployeeStatus, RoleEnum, User
from routes.common import (
    clean_string,
    current_user_id,
    extract_string,
    is_admin,
    paginate,
    parse_amount,
    parse_enum,
    parse_iso_date,
    normalize_bool,
    require_role,
)
from schemas import UserSchema

bp = Blueprint("users", __name__, url_prefix="/api/users")
user_schema = UserSchema()
users_schema = UserSchema(many=True)


def _normalise_email(value: str | None) -> str:
    return (value or "").strip().lower()


def _apply_user_payload(user: User, payload: dict, *, creating: bool) -> None:
    """Copy validated fields from ``payload`` onto ``user``; raise ValueError on bad input."""

    if creating or "firstName" in payload:
        user.first_name = extract_string(payload.get("firstName"), label="First name", required=True, max_length=80)
    if creating or "lastName" in payload:
        user.last_name = extract_string(payload.get("lastName"), label="Last name", max_length=80) or ""

    if creating or "email" in payload:
        email = _normalise_email(payload.get("email"))
        if not email or "@" not in email:
            raise ValueError("A valid email is required.")
        existing = User.query.filter(func.lower(User.email) == email)
        if user.id is not None:
            existing = existing.filter(User.id != user.id)
        if existing.first():
            raise ValueError("Email already registered")
        user.email = email

    if creating or "role" in payload:
        role = parse_enum(RoleEnum, payload.get("role"), label="Role", default=RoleEnum.employee)
        if role == RoleEnum.super_admin and not require_role(RoleEnum.super_admin):
            raise PermissionError("Only super admins can grant the SuperAdmin role.")
        user.role = role

    if "department" in payload:
        department_id = payload.get("department")
        if department_id in (None, ""):
            user.department = None
        else:
            department = Department.query.get(department_id)
            if department is None:
                raise ValueError("Department not found.")
            user.department = department

    if "joiningDate" in payload:
        user.joining_date = parse_iso_date(payload.get("joiningDate"), label="Joining date", required=False)
    if "dob" in payload:
        user.dob = parse_iso_date(payload.get("dob"), label="Date of birth", required=False)
    if "mobile1" in payload:
        user.mobile = extract_string(payload.get("mobile1"), label="Mobile", max_length=30)
    if "salary" in payload:
        raw_salary = payload.get("salary")
        user.salary = None if raw_salary in (None, "") else parse_amount(raw_salary, label="Salary")
    if "status" in payload:
        user.status = parse_enum(EmployeeStatus, payload.get("status"), label="Status")
    if "active" in payload:
        user.active = normalize_bool(payload.get("active"), label="Active")

    password = payload.get("password") or ""
    if creating and not password:
        raise ValueError("Password is required.")
    if password:
        if len(password) < 6:
            raise ValueError("Password must be at least 6 characters.")
        user.set_password(password)


@bp.get("")
@bp.get("/")
@jwt_required()
def list_users():
    """Return employees, paginated when ``page`` is supplied."""

    query = User.query
    role_value = clean_string(request.args.get("role"))
    if role_value:
        try:
            query = query.filter(User.role == parse_enum(RoleEnum, role_value, label="Role"))
        except ValueError as exc:
            return jsonify({"msg": str(exc)}), 400

    text = clean_string(request.args.get("q"))
    if text:
        like = f"%{text}%"
        query = query.filter(
            or_(User.first_name.ilike(like), User.last_name.ilike(like), User.email.ilike(like))
        )

    query = query.order_by(asc(User.first_name), asc(User.last_name), asc(User.id))

    if "page" not in request.args:
        users = query.all()
        return jsonify({"users": users_schema.dump(users), "totalItems": len(users), "totalPages": 1, "currentPage": 1})

    users, meta = paginate(query)
    return jsonify({"users": users_schema.dump(users), **meta})


@bp.get("/<int:user_id>")
@jwt_required()
def get_user(user_id: int):
    if not is_admin() and current_user_id() != user_id:
        return jsonify({"msg": "You can only view your own profile"}), 403

    user = User.query.get(user_id)
    if not user:
        return jsonify({"msg": "User not found"}), 404
    return jsonify(user_schema.dump(user))


@bp.post("")
@bp.post("/")
@jwt_required()
def create_user():
    if not is_admin():
        return jsonify({"msg": "Admins only"}), 403

    payload = request.get_json(silent=True) or {}
    user = User()
    try:
        _apply_user_payload(user, payload, creating=True)
    except PermissionError as exc:
        return jsonify({"msg": str(exc)}), 403
    except ValueError as exc:
        return jsonify({"msg": str(exc)}), 400

    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"msg": "Email already registered"}), 400

    return jsonify({"user": user_schema.dump(user)}), 201


@bp.put("/<int:user_id>")
@jwt_required()
def update_user(user_id: int):
    acting_id = current_user_id()
    admin = is_admin()
    if not admin and acting_id != user_id:
        return jsonify({"msg": "Admins only"}), 403

    user = User.query.get(user_id)
    if not user:
        return jsonify({"msg": "User not found"}), 404

    payload = request.get_json(silent=True) or {}
    if not admin:
        # Employees may only edit their contact details and password.
        payload = {key: payload[key] for key in ("firstName", "lastName", "mobile1", "dob", "password") if key in payload}

    if user.role == RoleEnum.super_admin and not require_role(RoleEnum.super_admin) and acting_id != user.id:
        return jsonify({"msg": "Only super admins can edit a super admin"}), 403

    try:
        _apply_user_payload(user, payload, creating=False)
    except PermissionError as exc:
        db.session.rollback()
        return jsonify({"msg": str(exc)}), 403
    except ValueError as exc:
        db.session.rollback()
        return jsonify({"msg": str(exc)}), 400

    db.session.commit()
    return jsonify({"user": user_schema.dump(user)})


@bp.delete("/<int:user_id>")
@jwt_required()
def delete_user(user_id: int):
    if not is_admin():
        return jsonify({"msg": "Admins only"}), 403

    user = User.query.get(user_id)
    if not user:
        return jsonify({"msg": "User not found"}), 404

    if user.id == current_user_id():
        return jsonify({"msg": "You cannot delete your own account."}), 400

    if user.role == RoleEnum.super_admin:
        if not require_role(RoleEnum.super_admin):
            return jsonify({"msg": "Only super admins can delete a super admin"}), 403
        remaining = User.query.filter(User.role == RoleEnum.super_admin, User.id != user.id).count()
        if remaining == 0:
            return jsonify({"msg": "Cannot delete the last super admin."}), 400

    try:
        db.session.delete(user)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"msg": "Unable to delete user because they are linked to other records."}), 400

    return jsonify({"msg": "User deleted"})
