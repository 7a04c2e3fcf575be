from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from sqlalchemy import or_

from extensions import db
from models import Project, Team, TeamStatus, User
from routes.common import current_user_id, extract_string, is_admin, parse_enum, parse_int
from routes.projects import resolve_members
from schemas import TeamSchema

bp = Blueprint("teams", __name__, url_prefix="/api/teams")
team_schema = TeamSchema()
teams_schema = TeamSchema(many=True)


def _apply_team_payload(team: Team, payload: dict, *, creating: bool) -> None:
    if creating or "name" in payload:
        team.name = extract_string(payload.get("name"), label="Name", required=True, max_length=200)
    if creating or "manager" in payload:
        manager_id = parse_int(payload.get("manager"), min_value=1)
        manager = User.query.get(manager_id) if manager_id else None
        if manager is None:
            raise ValueError("Manager not found.")
        team.manager = manager
    if creating or "teamMembers" in payload:
        team.members = resolve_members(payload.get("teamMembers"))
    if creating or "project" in payload:
        project_id = payload.get("project")
        if project_id in (None, ""):
            team.project = None
        else:
            project = Project.query.get(parse_int(project_id, min_value=1) or 0)
            if project is None:
                raise ValueError("Project not found.")
            team.project = project
    if creating or "status" in payload:
        team.status = parse_enum(TeamStatus, payload.get("status"), label="Status", default=TeamStatus.ACTIVE)

    # the manager is never listed as a member
    team.members = [member for member in team.members if member.id != team.manager.id]


def _can_view(team: Team) -> bool:
    user_id = current_user_id()
    return is_admin() or team.manager_id == user_id or any(member.id == user_id for member in team.members)


@bp.get("")
@jwt_required()
def list_teams():
    query = Team.query
    if not is_admin():
        user_id = current_user_id()
        query = query.filter(or_(Team.manager_id == user_id, Team.members.any(User.id == user_id)))

    teams = query.order_by(Team.created_at.desc(), Team.id.desc()).all()
    return jsonify(teams_schema.dump(teams))


@bp.get("/<int:team_id>")
@jwt_required()
def get_team(team_id: int):
    team = Team.query.get_or_404(team_id)
    if not _can_view(team):
        return jsonify({"msg": "You are not part of this team."}), 403
    return jsonify(team_schema.dump(team))


@bp.post("")
@jwt_required()
def create_team():
    if not is_admin():
        return jsonify({"msg": "Only administrators can manage teams."}), 403

    payload = request.get_json(silent=True) or {}
    team = Team()
    try:
        _apply_team_payload(team, payload, creating=True)
    except ValueError as exc:
        return jsonify({"msg": str(exc)}), 400

    db.session.add(team)
    db.session.commit()
    return jsonify(team_schema.dump(team)), 201


@bp.put("/<int:team_id>")
@jwt_required()
def update_team(team_id: int):
    if not is_admin():
        return jsonify({"msg": "Only administrators can manage teams."}), 403

    team = Team.query.get_or_404(team_id)
    payload = request.get_json(silent=True) or {}
    try:
        _apply_team_payload(team, payload, creating=False)
    except ValueError as exc:
        db.session.rollback()
        return jsonify({"msg": str(exc)}), 400

    db.session.commit()
    return jsonify(team_schema.dump(team))


@bp.delete("/<int:team_id>")
@jwt_required()
def delete_team(team_id: int):
    if not is_admin():
        return jsonify({"msg": "Only administrators can manage teams."}), 403

    team = Team.query.get_or_404(team_id)
    db.session.delete(team)
    db.session.commit()
    return jsonify({"msg": "Team deleted"})
