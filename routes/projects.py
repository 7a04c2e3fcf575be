from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required

from extensions import db
from models import Client, Project, ProjectStatus, User
from routes.common import (
    clean_string,
    current_user_id,
    extract_string,
    is_admin,
    paginate,
    parse_enum,
    parse_int,
    parse_iso_date,
)
from schemas import ProjectSchema

bp = Blueprint("projects", __name__, url_prefix="/api/projects")
project_schema = ProjectSchema()
projects_schema = ProjectSchema(many=True)


def resolve_members(values) -> list[User]:
    if values is None:
        return []
    if not isinstance(values, list):
        raise ValueError("Members must be a list of employee ids.")

    ids: list[int] = []
    for value in values:
        member_id = parse_int(value, min_value=1)
        if member_id is None:
            raise ValueError("Members must be a list of employee ids.")
        if member_id not in ids:
            ids.append(member_id)

    users = User.query.filter(User.id.in_(ids)).all() if ids else []
    if len(users) != len(ids):
        raise ValueError("One or more members were not found.")
    by_id = {user.id: user for user in users}
    return [by_id[member_id] for member_id in ids]


def _apply_project_payload(project: Project, payload: dict, *, creating: bool) -> None:
    if creating or "name" in payload:
        project.name = extract_string(payload.get("name"), label="Name", required=True, max_length=200)
    if creating or "description" in payload:
        project.description = extract_string(payload.get("description"), label="Description")
    if creating or "client" in payload:
        client_id = payload.get("client")
        if client_id in (None, ""):
            project.client = None
        else:
            client = Client.query.get(parse_int(client_id, min_value=1) or 0)
            if client is None:
                raise ValueError("Client not found.")
            project.client = client
    if creating or "startDate" in payload:
        project.start_date = parse_iso_date(payload.get("startDate"), label="Start date", required=False)
    if creating or "endDate" in payload:
        project.end_date = parse_iso_date(payload.get("endDate"), label="End date", required=False)
    if creating or "status" in payload:
        project.status = parse_enum(ProjectStatus, payload.get("status"), label="Status", default=ProjectStatus.NOT_STARTED)
    if creating or "members" in payload:
        project.members = resolve_members(payload.get("members"))

    if project.start_date and project.end_date and project.end_date < project.start_date:
        raise ValueError("End date cannot be before start date.")


@bp.get("")
@jwt_required()
def list_projects():
    query = Project.query
    if not is_admin():
        query = query.filter(Project.members.any(User.id == current_user_id()))

    status = clean_string(request.args.get("status"))
    if status:
        try:
            query = query.filter(Project.status == parse_enum(ProjectStatus, status, label="Status"))
        except ValueError as exc:
            return jsonify({"msg": str(exc)}), 400

    text = clean_string(request.args.get("q"))
    if text:
        query = query.filter(Project.name.ilike(f"%{text}%"))

    query = query.order_by(Project.created_at.desc(), Project.id.desc())
    if "page" not in request.args:
        return jsonify({"projects": projects_schema.dump(query.all())})

    projects, meta = paginate(query)
    return jsonify({"projects": projects_schema.dump(projects), **meta})


@bp.get("/<int:project_id>")
@jwt_required()
def get_project(project_id: int):
    project = Project.query.get_or_404(project_id)
    if not is_admin() and current_user_id() not in {member.id for member in project.members}:
        return jsonify({"msg": "You are not a member of this project."}), 403
    return jsonify(project_schema.dump(project))


@bp.post("")
@jwt_required()
def create_project():
    if not is_admin():
        return jsonify({"msg": "Only administrators can manage projects."}), 403

    payload = request.get_json(silent=True) or {}
    project = Project()
    try:
        _apply_project_payload(project, payload, creating=True)
    except ValueError as exc:
        return jsonify({"msg": str(exc)}), 400

    db.session.add(project)
    db.session.commit()
    return jsonify(project_schema.dump(project)), 201


@bp.put("/<int:project_id>")
@jwt_required()
def update_project(project_id: int):
    if not is_admin():
        return jsonify({"msg": "Only administrators can manage projects."}), 403

    project = Project.query.get_or_404(project_id)
    payload = request.get_json(silent=True) or {}
    try:
        _apply_project_payload(project, payload, creating=False)
    except ValueError as exc:
        db.session.rollback()
        return jsonify({"msg": str(exc)}), 400

    db.session.commit()
    return jsonify(project_schema.dump(project))


@bp.delete("/<int:project_id>")
@jwt_required()
def delete_project(project_id: int):
    if not is_admin():
        return jsonify({"msg": "Only administrators can manage projects."}), 403

    project = Project.query.get_or_404(project_id)
    db.session.delete(project)
    db.session.commit()
    return jsonify({"msg": "Project deleted"})
