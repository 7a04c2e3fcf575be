"""Invoices, employee payments and company expenses."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from extensions import db
from models import (
    Client,
    Expense,
    ExpenseStatus,
    Invoice,
    InvoiceStatus,
    Payment,
    User,
    next_sequence_code,
)
from routes.common import (
    clean_string,
    extract_string,
    is_admin,
    paginate,
    parse_amount,
    parse_enum,
    parse_int,
    parse_iso_date,
)
from schemas import ExpenseSchema, InvoiceSchema, PaymentSchema

bp = Blueprint("accounts", __name__, url_prefix="/api")
invoice_schema = InvoiceSchema()
invoices_schema = InvoiceSchema(many=True)
payment_schema = PaymentSchema()
payments_schema = PaymentSchema(many=True)
expense_schema = ExpenseSchema()
expenses_schema = ExpenseSchema(many=True)

ADMIN_ONLY_MSG = "Only administrators can manage accounts."


def _commit_numbered(label: str):
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        current_app.logger.warning("Duplicate %s number generated", label)
        return jsonify({"msg": f"Unable to allocate a {label} number, please retry."}), 400
    return None


def _apply_date_range(query, column):
    from_date = parse_iso_date(request.args.get("from_date"), label="from_date", required=False)
    to_date = parse_iso_date(request.args.get("to_date"), label="to_date", required=False)
    if from_date:
        query = query.filter(column >= from_date)
    if to_date:
        query = query.filter(column <= to_date)
    return query


# ---- invoices ----

def _apply_invoice_payload(invoice: Invoice, payload: dict, *, creating: bool) -> None:
    if creating or "client" in payload:
        client = Client.query.get(parse_int(payload.get("client"), min_value=1) or 0)
        if client is None:
            raise ValueError("Client not found.")
        invoice.client = client
    if creating or "date" in payload:
        invoice.date = parse_iso_date(payload.get("date"))
    if creating or "type" in payload:
        invoice.type = extract_string(payload.get("type"), label="Type", max_length=60)
    if creating or "status" in payload:
        invoice.status = parse_enum(InvoiceStatus, payload.get("status"), label="Status", default=InvoiceStatus.UNPAID)
    if creating or "amount" in payload:
        invoice.amount = parse_amount(payload.get("amount"))


@bp.get("/invoices")
@jwt_required()
def list_invoices():
    if not is_admin():
        return jsonify({"msg": ADMIN_ONLY_MSG}), 403

    query = Invoice.query
    try:
        query = _apply_date_range(query, Invoice.date)
        status = clean_string(request.args.get("status"))
        if status:
            query = query.filter(Invoice.status == parse_enum(InvoiceStatus, status, label="Status"))
    except ValueError as exc:
        return jsonify({"msg": str(exc)}), 400

    text = clean_string(request.args.get("q"))
    if text:
        query = query.join(Client).filter(or_(Invoice.invoice_no.ilike(f"%{text}%"), Client.name.ilike(f"%{text}%")))

    invoices, meta = paginate(query.order_by(Invoice.date.desc(), Invoice.id.desc()))
    return jsonify({"invoices": invoices_schema.dump(invoices), **meta})


@bp.get("/invoices/<int:invoice_id>")
@jwt_required()
def get_invoice(invoice_id: int):
    if not is_admin():
        return jsonify({"msg": ADMIN_ONLY_MSG}), 403
    return jsonify(invoice_schema.dump(Invoice.query.get_or_404(invoice_id)))


@bp.post("/invoices")
@jwt_required()
def create_invoice():
    if not is_admin():
        return jsonify({"msg": ADMIN_ONLY_MSG}), 403

    payload = request.get_json(silent=True) or {}
    invoice = Invoice()
    try:
        _apply_invoice_payload(invoice, payload, creating=True)
    except ValueError as exc:
        return jsonify({"msg": str(exc)}), 400

    invoice.invoice_no = next_sequence_code(Invoice.invoice_no, "INV")
    db.session.add(invoice)
    error = _commit_numbered("invoice")
    if error:
        return error
    return jsonify(invoice_schema.dump(invoice)), 201


@bp.put("/invoices/<int:invoice_id>")
@jwt_required()
def update_invoice(invoice_id: int):
    if not is_admin():
        return jsonify({"msg": ADMIN_ONLY_MSG}), 403

    invoice = Invoice.query.get_or_404(invoice_id)
    payload = request.get_json(silent=True) or {}
    try:
        _apply_invoice_payload(invoice, payload, creating=False)
    except ValueError as exc:
        db.session.rollback()
        return jsonify({"msg": str(exc)}), 400

    db.session.commit()
    return jsonify(invoice_schema.dump(invoice))


@bp.delete("/invoices/<int:invoice_id>")
@jwt_required()
def delete_invoice(invoice_id: int):
    if not is_admin():
        return jsonify({"msg": ADMIN_ONLY_MSG}), 403

    invoice = Invoice.query.get_or_404(invoice_id)
    db.session.delete(invoice)
    db.session.commit()
    return jsonify({"msg": "Invoice deleted"})


# ---- payments ----

def _apply_payment_payload(payment: Payment, payload: dict, *, creating: bool) -> None:
    if creating or "employee" in payload:
        employee = User.query.get(parse_int(payload.get("employee"), min_value=1) or 0)
        if employee is None:
            raise ValueError("Employee not found.")
        payment.employee = employee
    if creating or "reason" in payload:
        payment.reason = extract_string(payload.get("reason"), label="Reason", max_length=255)
    if creating or "date" in payload:
        payment.date = parse_iso_date(payload.get("date"))
    if creating or "type" in payload:
        payment.type = extract_string(payload.get("type"), label="Type", max_length=60)
    if creating or "amount" in payload:
        payment.amount = parse_amount(payload.get("amount"))


@bp.get("/payments")
@jwt_required()
def list_payments():
    if not is_admin():
        return jsonify({"msg": ADMIN_ONLY_MSG}), 403

    query = Payment.query
    try:
        query = _apply_date_range(query, Payment.date)
    except ValueError as exc:
        return jsonify({"msg": str(exc)}), 400

    employee_id = parse_int(request.args.get("employee"), min_value=1)
    if employee_id:
        query = query.filter(Payment.employee_id == employee_id)

    payments, meta = paginate(query.order_by(Payment.date.desc(), Payment.id.desc()))
    return jsonify({"payments": payments_schema.dump(payments), **meta})


@bp.get("/payments/<int:payment_id>")
@jwt_required()
def get_payment(payment_id: int):
    if not is_admin():
        return jsonify({"msg": ADMIN_ONLY_MSG}), 403
    return jsonify(payment_schema.dump(Payment.query.get_or_404(payment_id)))


@bp.post("/payments")
@jwt_required()
def create_payment():
    if not is_admin():
        return jsonify({"msg": ADMIN_ONLY_MSG}), 403

    payload = request.get_json(silent=True) or {}
    payment = Payment()
    try:
        _apply_payment_payload(payment, payload, creating=True)
    except ValueError as exc:
        return jsonify({"msg": str(exc)}), 400

    payment.payment_no = next_sequence_code(Payment.payment_no, "PAY")
    db.session.add(payment)
    error = _commit_numbered("payment")
    if error:
        return error
    return jsonify(payment_schema.dump(payment)), 201


@bp.put("/payments/<int:payment_id>")
@jwt_required()
def update_payment(payment_id: int):
    if not is_admin():
        return jsonify({"msg": ADMIN_ONLY_MSG}), 403

    payment = Payment.query.get_or_404(payment_id)
    payload = request.get_json(silent=True) or {}
    try:
        _apply_payment_payload(payment, payload, creating=False)
    except ValueError as exc:
        db.session.rollback()
        return jsonify({"msg": str(exc)}), 400

    db.session.commit()
    return jsonify(payment_schema.dump(payment))


@bp.delete("/payments/<int:payment_id>")
@jwt_required()
def delete_payment(payment_id: int):
    if not is_admin():
        return jsonify({"msg": ADMIN_ONLY_MSG}), 403

    payment = Payment.query.get_or_404(payment_id)
    db.session.delete(payment)
    db.session.commit()
    return jsonify({"msg": "Payment deleted"})


# ---- expenses ----

def _apply_expense_payload(expense: Expense, payload: dict, *, creating: bool) -> None:
    if creating or "item" in payload:
        expense.item = extract_string(payload.get("item"), label="Item", required=True, max_length=200)
    if creating or "orderBy" in payload:
        expense.order_by = extract_string(payload.get("orderBy"), label="Order by", max_length=120)
    if creating or "from" in payload:
        expense.source = extract_string(payload.get("from"), label="From", max_length=120)
    if creating or "date" in payload:
        expense.date = parse_iso_date(payload.get("date"))
    if creating or "status" in payload:
        expense.status = parse_enum(ExpenseStatus, payload.get("status"), label="Status", default=ExpenseStatus.PENDING)
    if creating or "type" in payload:
        expense.type = extract_string(payload.get("type"), label="Type", max_length=60)
    if creating or "amount" in payload:
        expense.amount = parse_amount(payload.get("amount"))


@bp.get("/expenses")
@jwt_required()
def list_expenses():
    if not is_admin():
        return jsonify({"msg": ADMIN_ONLY_MSG}), 403

    query = Expense.query
    try:
        query = _apply_date_range(query, Expense.date)
        status = clean_string(request.args.get("status"))
        if status:
            query = query.filter(Expense.status == parse_enum(ExpenseStatus, status, label="Status"))
    except ValueError as exc:
        return jsonify({"msg": str(exc)}), 400

    text = clean_string(request.args.get("q"))
    if text:
        query = query.filter(or_(Expense.item.ilike(f"%{text}%"), Expense.expense_no.ilike(f"%{text}%")))

    expenses, meta = paginate(query.order_by(Expense.date.desc(), Expense.id.desc()))
    return jsonify({"expenses": expenses_schema.dump(expenses), **meta})


@bp.get("/expenses/<int:expense_id>")
@jwt_required()
def get_expense(expense_id: int):
    if not is_admin():
        return jsonify({"msg": ADMIN_ONLY_MSG}), 403
    return jsonify(expense_schema.dump(Expense.query.get_or_404(expense_id)))


@bp.post("/expenses")
@jwt_required()
def create_expense():
    if not is_admin():
        return jsonify({"msg": ADMIN_ONLY_MSG}), 403

    payload = request.get_json(silent=True) or {}
    expense = Expense()
    try:
        _apply_expense_payload(expense, payload, creating=True)
    except ValueError as exc:
        return jsonify({"msg": str(exc)}), 400

    expense.expense_no = next_sequence_code(Expense.expense_no, "EXP")
    db.session.add(expense)
    error = _commit_numbered("expense")
    if error:
        return error
    return jsonify(expense_schema.dump(expense)), 201


@bp.put("/expenses/<int:expense_id>")
@jwt_required()
def update_expense(expense_id: int):
    if not is_admin():
        return jsonify({"msg": ADMIN_ONLY_MSG}), 403

    expense = Expense.query.get_or_404(expense_id)
    payload = request.get_json(silent=True) or {}
    try:
        _apply_expense_payload(expense, payload, creating=False)
    except ValueError as exc:
        db.session.rollback()
        return jsonify({"msg": str(exc)}), 400

    db.session.commit()
    return jsonify(expense_schema.dump(expense))


@bp.delete("/expenses/<int:expense_id>")
@jwt_required()
def delete_expense(expense_id: int):
    if not is_admin():
        return jsonify({"msg": ADMIN_ONLY_MSG}), 403

    expense = Expense.query.get_or_404(expense_id)
    db.session.delete(expense)
    db.session.commit()
    return jsonify({"msg": "Expense deleted"})
