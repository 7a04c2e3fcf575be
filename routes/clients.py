from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from extensions import db
from models import Client
from routes.common import clean_string, extract_string, is_admin, paginate
from schemas import ClientSchema

bp = Blueprint("clients", __name__, url_prefix="/api/clients")
client_schema = ClientSchema()
clients_schema = ClientSchema(many=True)


def _apply_client_payload(client: Client, payload: dict, *, creating: bool) -> None:
    if creating or "name" in payload:
        client.name = extract_string(payload.get("name"), label="Name", required=True, max_length=200)
    if creating or "email" in payload:
        email = extract_string(payload.get("email"), label="Email", max_length=120)
        if email and "@" not in email:
            raise ValueError("Email must be a valid address.")
        client.email = email.lower() if email else None
    if creating or "phone" in payload:
        client.phone = extract_string(payload.get("phone"), label="Phone", max_length=30)
    if creating or "company" in payload:
        client.company = extract_string(payload.get("company"), label="Company", max_length=200)


@bp.get("")
@jwt_required()
def list_clients():
    query = Client.query
    text = clean_string(request.args.get("q"))
    if text:
        like = f"%{text}%"
        query = query.filter(or_(Client.name.ilike(like), Client.company.ilike(like), Client.email.ilike(like)))
    query = query.order_by(Client.name.asc(), Client.id.asc())

    if "page" not in request.args:
        return jsonify({"clients": clients_schema.dump(query.all())})

    clients, meta = paginate(query)
    return jsonify({"clients": clients_schema.dump(clients), **meta})


@bp.get("/<int:client_id>")
@jwt_required()
def get_client(client_id: int):
    return jsonify(client_schema.dump(Client.query.get_or_404(client_id)))


@bp.post("")
@jwt_required()
def create_client():
    if not is_admin():
        return jsonify({"msg": "Only administrators can manage clients."}), 403

    payload = request.get_json(silent=True) or {}
    client = Client()
    try:
        _apply_client_payload(client, payload, creating=True)
    except ValueError as exc:
        return jsonify({"msg": str(exc)}), 400

    db.session.add(client)
    db.session.commit()
    return jsonify(client_schema.dump(client)), 201


@bp.put("/<int:client_id>")
@jwt_required()
def update_client(client_id: int):
    if not is_admin():
        return jsonify({"msg": "Only administrators can manage clients."}), 403

    client = Client.query.get_or_404(client_id)
    payload = request.get_json(silent=True) or {}
    try:
        _apply_client_payload(client, payload, creating=False)
    except ValueError as exc:
        db.session.rollback()
        return jsonify({"msg": str(exc)}), 400

    db.session.commit()
    return jsonify(client_schema.dump(client))


@bp.delete("/<int:client_id>")
@jwt_required()
def delete_client(client_id: int):
    if not is_admin():
        return jsonify({"msg": "Only administrators can manage clients."}), 403

    client = Client.query.get_or_404(client_id)
    if client.invoices:
        return jsonify({"msg": "Client has invoices and cannot be deleted."}), 400

    for project in list(client.projects):
        project.client = None
    try:
        db.session.delete(client)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"msg": "Unable to delete client because it is linked to other records."}), 400
    return jsonify({"msg": "Client deleted"})
