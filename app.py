from __future__ import annotations

import atexit
from datetime import datetime
from typing import Dict, List, Optional

from flask import (
    Flask,
    abort,
    flash,
    jsonify,
    make_response,
    redirect,
    render_template,
    request,
    url_for,
)
from markdown import markdown
from werkzeug.exceptions import MethodNotAllowed

import auth
import config
import store


config.check_settings()

app = Flask(__name__)
app.secret_key = config.SECRET_KEY

store.init_client(config.MONGODB_URI, config.MONGODB_DB)
atexit.register(store.close_client)

ISO_FMT = "%Y-%m-%dT%H:%M:%S.%fZ"
ALL_CATEGORIES = "All"


def parse_date(date_str: Optional[str]) -> datetime:
    if not date_str:
        return datetime.min
    try:
        return datetime.strptime(date_str, ISO_FMT)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(date_str.replace("Z", "+00:00"))
    except ValueError:
        return datetime.min


def format_date(date_str: Optional[str], fmt: str = "%d/%m/%Y") -> str:
    dt = parse_date(date_str)
    if dt == datetime.min:
        return ""
    return dt.strftime(fmt)


def format_time(date_str: Optional[str], fmt: str = "%H:%M:%S") -> str:
    return format_date(date_str, fmt)


def filter_posts(posts: List[Dict], search: str = "", category: str = ALL_CATEGORIES) -> List[Dict]:
    term = (search or "").lower()
    category = category or ALL_CATEGORIES
    return [
        p
        for p in posts
        if (category == ALL_CATEGORIES or p.get("category") == category)
        and (term in p.get("title", "").lower() or term in p.get("content", "").lower())
    ]


def render_markdown(md_text: str) -> str:
    return markdown(
        md_text or "",
        extensions=["fenced_code", "tables", "sane_lists", "nl2br"],
        output_format="html5",
    )


def request_payload():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = request.form
    return payload


def api_error(message: str, status: int):
    return jsonify({"message": message}), status


@app.context_processor
def inject_globals():
    return {
        "site_title": config.SITE_TITLE,
        "site_description": config.SITE_DESCRIPTION,
        "categories": [ALL_CATEGORIES] + config.CATEGORIES,
        "format_date": format_date,
        "format_time": format_time,
        "is_admin": auth.is_admin,
        "current_role": auth.current_role,
    }


@app.errorhandler(MethodNotAllowed)
def method_not_allowed(exc):
    if not request.path.startswith("/api/"):
        return exc
    response = jsonify({"message": f"Method {request.method} Not Allowed"})
    response.status_code = 405
    if exc.valid_methods:
        response.headers["Allow"] = ", ".join(exc.valid_methods)
    return response


# JSON API


@app.route("/api/auth", methods=["POST"])
def api_auth():
    payload = request_payload()
    token = auth.check_code(payload.get("code"))
    if token is None:
        return api_error("Invalid code", 401)
    app.logger.info("Admin code accepted")
    return jsonify({"token": token})


@app.route("/api/mongodb", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
def api_posts():
    if request.method == "GET":
        return read_posts()
    if request.method == "POST":
        return add_post()
    return api_error("Method not allowed", 405)


@auth.token_required()
def read_posts():
    post_id = request.args.get("id")
    try:
        if post_id is not None:
            post = store.get_post(post_id)
            if post is None:
                return api_error("Post not found", 404)
            return jsonify({"message": "Success", "post": post})
        return jsonify({"message": "Success", "posts": store.list_posts()})
    except store.StoreError as exc:
        app.logger.exception("Error fetching posts")
        return api_error(str(exc) or "An unexpected error occurred", 500)


@auth.token_required(admin=True)
def add_post():
    payload = request_payload()
    if store.validate_post(payload):
        return api_error("Title, content, and category are required", 400)
    try:
        post = store.create_post(
            title=payload["title"],
            content=payload["content"],
            category=payload["category"],
            image_url=payload.get("imageUrl") if isinstance(payload.get("imageUrl"), str) else None,
        )
    except store.StoreError as exc:
        app.logger.exception("Error creating post")
        return api_error(str(exc) or "An unexpected error occurred", 500)
    app.logger.info("Created post %s", post["_id"])
    return jsonify({"message": "Post created successfully", "post": post}), 201


# Pages


@app.route("/login", methods=["GET", "POST"])
def login():
    if request.method == "POST":
        token = auth.check_code(request.form.get("code", ""))
        if token is not None:
            return auth.set_credential(make_response(redirect(url_for("index"))), token)
        flash("Invalid code. Please try again.", "error")
    return render_template("login.html")


@app.route("/login/guest", methods=["POST"])
def login_guest():
    return auth.set_credential(make_response(redirect(url_for("index"))), config.GUEST_TOKEN)


@app.route("/logout")
def logout():
    return auth.clear_credential(make_response(redirect(url_for("login"))))


@app.route("/")
def index():
    if auth.current_role() is None:
        return redirect(url_for("login"))
    search = request.args.get("q", "").strip()
    category = request.args.get("category", ALL_CATEGORIES)
    try:
        posts = store.list_posts()
    except store.StoreError:
        app.logger.exception("Error fetching posts")
        flash("Could not load posts.", "error")
        posts = []
    return render_template(
        "index.html",
        posts=filter_posts(posts, search, category),
        search=search,
        selected_category=category,
    )


@app.route("/posts/new", methods=["POST"])
def new_post():
    role = auth.current_role()
    if role is None:
        return redirect(url_for("login"))
    if role != auth.ADMIN:
        abort(403)
    form = {key: request.form.get(key, "") for key in ("title", "content", "imageUrl", "category")}
    missing_fields = store.validate_post(form)
    if missing_fields:
        labels = ", ".join(f.capitalize() for f in missing_fields)
        flash(f"Please fill in the following fields: {labels}.", "error")
        return redirect(url_for("index"))
    try:
        post = store.create_post(
            title=form["title"].strip(),
            content=form["content"].strip(),
            category=form["category"].strip(),
            image_url=form["imageUrl"].strip(),
        )
    except store.StoreError:
        app.logger.exception("Error creating post")
        flash("An unexpected error occurred.", "error")
        return redirect(url_for("index"))
    flash("Post created", "success")
    return redirect(url_for("post_detail", post_id=post["_id"]))


@app.route("/post/<post_id>")
def post_detail(post_id: str):
    if auth.current_role() is None:
        return redirect(url_for("login"))
    try:
        post = store.get_post(post_id)
    except store.StoreError:
        app.logger.exception("Error fetching post %s", post_id)
        abort(404)
    if not post:
        abort(404)
    return render_template(
        "post.html", post=post, content_html=render_markdown(post["content"])
    )


if __name__ == "__main__":
    app.run(debug=True)
