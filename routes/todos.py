from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from sqlalchemy import or_

from extensions import db
from models import Priority, Todo, TodoStatus, User
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
from schemas import TodoSchema

bp = Blueprint("todos", __name__, url_prefix="/api/todos")
todo_schema = TodoSchema()
todos_schema = TodoSchema(many=True)


def _apply_todo_payload(todo: Todo, payload: dict, *, creating: bool) -> None:
    if creating or "title" in payload:
        todo.title = extract_string(payload.get("title"), label="Title", required=True, max_length=200)
    if creating or "description" in payload:
        todo.description = extract_string(payload.get("description"), label="Description")
    if creating or "priority" in payload:
        todo.priority = parse_enum(Priority, payload.get("priority"), label="Priority", default=Priority.MEDIUM)
    if creating or "status" in payload:
        todo.status = parse_enum(TodoStatus, payload.get("status"), label="Status", default=TodoStatus.PENDING)
    if creating or "dueDate" in payload:
        todo.due_date = parse_iso_date(payload.get("dueDate"), label="Due date", required=False)
    if creating or "employee" in payload:
        employee_id = parse_int(payload.get("employee"), min_value=1)
        user = User.query.get(employee_id) if employee_id else None
        if user is None:
            raise ValueError("Assigned employee not found.")
        todo.employee = user


@bp.get("")
@jwt_required()
def list_todos():
    query = Todo.query
    if is_admin():
        employee_id = parse_int(request.args.get("employee"), min_value=1)
        if employee_id:
            query = query.filter(Todo.employee_id == employee_id)
    else:
        query = query.filter(Todo.employee_id == current_user_id())

    status = clean_string(request.args.get("status"))
    if status:
        try:
            query = query.filter(Todo.status == parse_enum(TodoStatus, status, label="Status"))
        except ValueError as exc:
            return jsonify({"msg": str(exc)}), 400

    text = clean_string(request.args.get("q"))
    if text:
        query = query.filter(or_(Todo.title.ilike(f"%{text}%"), Todo.description.ilike(f"%{text}%")))

    query = query.order_by(Todo.created_at.desc(), Todo.id.desc())
    if "page" not in request.args:
        return jsonify({"todos": todos_schema.dump(query.all())})

    todos, meta = paginate(query)
    return jsonify({"todos": todos_schema.dump(todos), **meta})


@bp.post("")
@jwt_required()
def create_todo():
    if not is_admin():
        return jsonify({"msg": "Only administrators can create todos."}), 403

    payload = request.get_json(silent=True) or {}
    todo = Todo(created_by_id=current_user_id())
    try:
        _apply_todo_payload(todo, payload, creating=True)
    except ValueError as exc:
        return jsonify({"msg": str(exc)}), 400

    db.session.add(todo)
    db.session.commit()
    return jsonify(todo_schema.dump(todo)), 201


@bp.put("/<int:todo_id>")
@jwt_required()
def update_todo(todo_id: int):
    todo = Todo.query.get_or_404(todo_id)
    payload = request.get_json(silent=True) or {}

    if not is_admin():
        if todo.employee_id != current_user_id():
            return jsonify({"msg": "You can only update your own todos."}), 403
        # Assignees may only move the status along.
        payload = {"status": payload.get("status")} if "status" in payload else {}
        if not payload:
            return jsonify({"msg": "Status is required."}), 400

    try:
        _apply_todo_payload(todo, payload, creating=False)
    except ValueError as exc:
        db.session.rollback()
        return jsonify({"msg": str(exc)}), 400

    db.session.commit()
    return jsonify(todo_schema.dump(todo))


@bp.delete("/<int:todo_id>")
@jwt_required()
def delete_todo(todo_id: int):
    if not is_admin():
        return jsonify({"msg": "Only administrators can delete todos."}), 403

    todo = Todo.query.get_or_404(todo_id)
    db.session.delete(todo)
    db.session.commit()
    return jsonify({"msg": "Todo deleted"})
