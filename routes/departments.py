from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from extensions import db
from models import Department
from routes.common import clean_string, extract_string, is_admin, paginate
from schemas import DepartmentSchema

bp = Blueprint("departments", __name__, url_prefix="/api/departments")
department_schema = DepartmentSchema()
departments_schema = DepartmentSchema(many=True)


def _name_taken(name: str, *, exclude_id: int | None = None) -> bool:
    query = Department.query.filter(func.lower(Department.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(Department.id != exclude_id)
    return query.first() is not None


@bp.get("")
@jwt_required()
def list_departments():
    query = Department.query
    text = clean_string(request.args.get("q"))
    if text:
        query = query.filter(Department.name.ilike(f"%{text}%"))
    departments, meta = paginate(query.order_by(Department.name.asc()))
    return jsonify({"departments": departments_schema.dump(departments), **meta})


@bp.post("")
@jwt_required()
def create_department():
    if not is_admin():
        return jsonify({"msg": "Only administrators can manage departments."}), 403

    payload = request.get_json(silent=True) or {}
    try:
        name = extract_string(payload.get("name"), label="Name", required=True, max_length=120)
        head = extract_string(payload.get("head"), label="Head", max_length=120)
    except ValueError as exc:
        return jsonify({"msg": str(exc)}), 400

    if _name_taken(name):
        return jsonify({"msg": "A department with this name already exists."}), 400

    department = Department(name=name, head=head)
    db.session.add(department)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"msg": "A department with this name already exists."}), 400
    return jsonify(department_schema.dump(department)), 201


@bp.put("/<int:department_id>")
@jwt_required()
def update_department(department_id: int):
    if not is_admin():
        return jsonify({"msg": "Only administrators can manage departments."}), 403

    department = Department.query.get_or_404(department_id)
    payload = request.get_json(silent=True) or {}
    try:
        if "name" in payload:
            name = extract_string(payload.get("name"), label="Name", required=True, max_length=120)
            if _name_taken(name, exclude_id=department.id):
                return jsonify({"msg": "A department with this name already exists."}), 400
            department.name = name
        if "head" in payload:
            department.head = extract_string(payload.get("head"), label="Head", max_length=120)
    except ValueError as exc:
        return jsonify({"msg": str(exc)}), 400

    db.session.commit()
    return jsonify(department_schema.dump(department))


@bp.delete("/<int:department_id>")
@jwt_required()
def delete_department(department_id: int):
    if not is_admin():
        return jsonify({"msg": "Only administrators can manage departments."}), 403

    department = Department.query.get_or_404(department_id)
    for employee in list(department.employees):
        employee.department = None
    db.session.delete(department)
    db.session.commit()
    return jsonify({"msg": "Department deleted"})
