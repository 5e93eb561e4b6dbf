import logging
from typing import Optional

import click
from flask import Flask, jsonify, request, send_from_directory
from flask_cors import CORS
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import RequestEntityTooLarge

from auth import SessionGate
from config import Settings
from errors import (
    BlogError,
    Forbidden,
    InvalidCredentials,
    InvalidIdentifier,
    MailDeliveryError,
    NotFound,
    PersistenceError,
)
from mailer import MailRelay
from models import db
from sessions import ServerSideSessionInterface, SessionStore
from store import PostStore, split_tags
from uploads import UPLOAD_FIELD, FileIntake

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("werkzeug").setLevel(logging.WARNING)


def parse_page(raw) -> int:
    """?page=N, with anything missing, non-numeric or below 1 clamped to 1."""
    try:
        page = int(raw)
    except (TypeError, ValueError):
        return 1
    return max(page, 1)


def request_payload():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else request.form


def create_app(
    settings: Optional[Settings] = None,
    mail_relay: Optional[MailRelay] = None,
    session_store: Optional[SessionStore] = None,
) -> Flask:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    app = Flask(__name__)
    app.config.update(settings.to_flask_config())
    app.session_interface = ServerSideSessionInterface(session_store)
    CORS(app, origins=list(settings.cors_origins), supports_credentials=True)
    db.init_app(app)

    store = PostStore(page_size=settings.page_size, default_author=settings.default_author)
    intake = FileIntake(settings.upload_folder)
    relay = mail_relay or MailRelay(settings)
    gate = SessionGate(settings)
    app.extensions["blog"] = {
        "settings": settings,
        "store": store,
        "intake": intake,
        "mail_relay": relay,
        "gate": gate,
    }

    intake.ensure_folder()

    # ===== Initialize DB at startup =====
    try:
        with app.app_context():
            db.create_all()
    except SQLAlchemyError:
        logger.exception("DB init failed")

    @app.cli.command("init-db")
    def init_db_command():
        """Create the posts table if it does not exist."""
        db.create_all()
        click.echo("Initialized the database.")

    # ===== Error handlers =====
    @app.errorhandler(Forbidden)
    def forbidden(e):
        return e.message, e.status_code

    @app.errorhandler(BlogError)
    def blog_error(e):
        return jsonify({"message": e.message}), e.status_code

    @app.errorhandler(RequestEntityTooLarge)
    def too_large(e):
        return jsonify({"message": "Uploaded file is too large"}), 413

    # ===== Routes =====
    @app.route("/")
    def index():
        return "Blog backend is running."

    @app.route("/check-auth")
    def check_auth():
        return "", 200 if gate.is_authenticated() else 401

    @app.route("/login", methods=["POST"])
    def login():
        data = request_payload()
        try:
            gate.login(data.get("email"), data.get("password"))
        except InvalidCredentials as e:
            return e.message, e.status_code
        return jsonify({"message": "Login successful"}), 200

    @app.route("/contact", methods=["POST"])
    def contact():
        data = request_payload()
        try:
            relay.send_contact_message(data.get("name"), data.get("email"), data.get("message"))
        except MailDeliveryError:
            logger.exception("Error sending email")
            return jsonify({"error": "Error sending email"}), 500
        return jsonify({"message": "Email sent successfully"})

    def create_post():
        form = request.form
        try:
            cover = intake.save(request.files.get(UPLOAD_FIELD))
            post_id = store.create_post(
                {
                    "title": form.get("title"),
                    "summary": form.get("summary"),
                    "content": form.get("content"),
                    "cover": cover,
                    "tags": split_tags(form.get("tags")),
                }
            )
        except (PersistenceError, OSError):
            logger.exception("Error creating post")
            return jsonify({"message": "Failed to create post"}), 500
        return jsonify({"message": "Post created successfully", "postId": post_id}), 200

    if settings.protect_post_creation:
        create_post = gate.admin_required(create_post)
    app.add_url_rule("/post", "create_post", create_post, methods=["POST"])

    @app.route("/posts/<post_id>")
    def get_post(post_id):
        try:
            post = store.get_post_by_id(post_id)
        except (InvalidIdentifier, NotFound) as e:
            return jsonify({"message": e.message}), e.status_code
        except PersistenceError:
            logger.exception("Error fetching post %s", post_id)
            return jsonify({"message": "Failed to fetch post"}), 500
        return jsonify(post.to_dict()), 200

    @app.route("/latest-posts")
    def latest_posts():
        page = parse_page(request.args.get("page"))
        try:
            posts = store.list_posts_paged(page)
        except PersistenceError:
            logger.exception("Error fetching posts")
            return jsonify({"message": "Failed to fetch posts"}), 500
        return jsonify([p.to_dict() for p in posts]), 200

    @app.route("/tags")
    def tags():
        try:
            unique_tags = store.list_distinct_tags()
        except PersistenceError:
            logger.exception("Error fetching unique tags")
            return jsonify({"message": "Failed to fetch unique tags"}), 500
        return jsonify(unique_tags), 200

    # Public and unauthenticated: anyone with a filename can fetch it.
    @app.route("/uploads/<path:filename>")
    def uploaded_file(filename):
        return send_from_directory(settings.upload_folder, filename)

    return app


if __name__ == "__main__":
    settings = Settings.from_env()
    app = create_app(settings)
    app.run(host="0.0.0.0", port=settings.port)
