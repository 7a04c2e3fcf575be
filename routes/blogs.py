from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from sqlalchemy import or_

from extensions import db
from models import Blog, unique_blog_slug
from routes.common import clean_string, current_user_id, extract_string, is_admin, normalize_bool, paginate
from schemas import BlogSchema

bp = Blueprint("blogs", __name__, url_prefix="/api/blogs")
blog_schema = BlogSchema()
blogs_schema = BlogSchema(many=True)

EXCERPT_LENGTH = 200


def _excerpt(content: str) -> str:
    text = " ".join((content or "").split())
    if len(text) <= EXCERPT_LENGTH:
        return text
    return text[: EXCERPT_LENGTH - 3].rstrip() + "..."


def _apply_blog_payload(blog: Blog, payload: dict, *, creating: bool) -> None:
    if creating or "title" in payload:
        title = extract_string(payload.get("title"), label="Title", required=True, max_length=255)
        if title != blog.title:
            blog.slug = unique_blog_slug(title, exclude_id=blog.id)
        blog.title = title
    if creating or "content" in payload:
        blog.content = extract_string(payload.get("content"), label="Content", required=True)
    if creating or "excerpt" in payload:
        blog.excerpt = extract_string(payload.get("excerpt"), label="Excerpt", max_length=500) or _excerpt(blog.content)
    if creating or "isPublished" in payload:
        blog.is_published = normalize_bool(payload.get("isPublished", True), label="isPublished")


def _find_blog(slug: str) -> Blog:
    return Blog.query.filter_by(slug=slug).first_or_404()


@bp.get("")
@jwt_required()
def list_blogs():
    query = Blog.query
    if not is_admin():
        query = query.filter(Blog.is_published.is_(True))

    text = clean_string(request.args.get("q"))
    if text:
        query = query.filter(or_(Blog.title.ilike(f"%{text}%"), Blog.content.ilike(f"%{text}%")))

    blogs, meta = paginate(query.order_by(Blog.created_at.desc(), Blog.id.desc()))
    return jsonify({"blogs": blogs_schema.dump(blogs), "pagination": meta})


@bp.get("/<string:slug>")
@jwt_required()
def get_blog(slug: str):
    blog = _find_blog(slug)
    if not blog.is_published and not is_admin():
        return jsonify({"msg": "Blog not found"}), 404
    return jsonify(blog_schema.dump(blog))


@bp.post("")
@jwt_required()
def create_blog():
    if not is_admin():
        return jsonify({"msg": "Only administrators can publish blogs."}), 403

    payload = request.get_json(silent=True) or {}
    blog = Blog(author_id=current_user_id())
    try:
        _apply_blog_payload(blog, payload, creating=True)
    except ValueError as exc:
        return jsonify({"msg": str(exc)}), 400

    db.session.add(blog)
    db.session.commit()
    return jsonify(blog_schema.dump(blog)), 201


@bp.put("/<string:slug>")
@jwt_required()
def update_blog(slug: str):
    if not is_admin():
        return jsonify({"msg": "Only administrators can edit blogs."}), 403

    blog = _find_blog(slug)
    payload = request.get_json(silent=True) or {}
    try:
        _apply_blog_payload(blog, payload, creating=False)
    except ValueError as exc:
        db.session.rollback()
        return jsonify({"msg": str(exc)}), 400

    db.session.commit()
    return jsonify(blog_schema.dump(blog))


@bp.delete("/<string:slug>")
@jwt_required()
def delete_blog(slug: str):
    if not is_admin():
        return jsonify({"msg": "Only administrators can delete blogs."}), 403

    blog = _find_blog(slug)
    db.session.delete(blog)
    db.session.commit()
    return jsonify({"msg": "Blog deleted"})
