import logging

from flask import Flask
from .config import Config
from .extensions import db, migrate, background
from .services import init_services
from .routes import redirect_bp, tracking_api_bp, health_bp


def _maybe_seed_demo(app):
    """
    Development only: export QRTRACK_SEED_DEMO=1 to create a demo account
    with one bridge-page campaign and one direct-redirect campaign.
    """
    if not app.config.get("QRTRACK_SEED_DEMO"):
        return

    from .models import User, Campaign

    if User.query.count() > 0:
        return

    demo = User(email="demo@example.com", full_name="Demo Account")
    db.session.add(demo)
    db.session.commit()

    examples = [
        ("Bondi Poster", "demo-bridge", "bondi-poster", True),
        ("Flyer Drop", "demo-direct", None, False),
    ]
    for name, code, slug, bridge in examples:
        db.session.add(Campaign(
            user_id=demo.id,
            name=name,
            tracking_code=code,
            slug=slug,
            destination_url="https://example.com/landing",
            bridge_enabled=bridge,
        ))
    db.session.commit()


def _configure_logging(app):
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )
    logging.getLogger("qrtrack").setLevel(level)


def create_app(config_object=None):
    app = Flask(__name__)
    app.config.from_object(config_object or Config)

    _configure_logging(app)

    db.init_app(app)
    migrate.init_app(app, db)
    background.init_app(app)
    init_services(app)

    app.register_blueprint(redirect_bp, url_prefix=app.config.get("REDIRECT_PREFIX", "/go"))
    app.register_blueprint(tracking_api_bp, url_prefix=app.config.get("API_PREFIX", "/api/go"))
    app.register_blueprint(health_bp)

    # Register error handlers
    @app.errorhandler(404)
    def not_found_error(error):
        from flask import render_template
        return render_template('404.html'), 404

    @app.errorhandler(500)
    def internal_error(error):
        from flask import render_template
        db.session.rollback()
        return render_template('404.html'), 500

    with app.app_context():
        app.logger.info("Database dialect -> %s", db.engine.dialect.name)
        if app.config.get("AUTO_CREATE_TABLES"):
            db.create_all()

        _maybe_seed_demo(app)

    return app
