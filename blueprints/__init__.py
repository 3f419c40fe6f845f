"""
Blueprint registration for EduGroup.

All blueprints are registered without URL prefixes; routes carry their own
/api paths.
"""

from __future__ import annotations


def register_blueprints(app):
    from blueprints.core import bp as core_bp
    from blueprints.groups import bp as groups_bp
    from blueprints.upload import bp as upload_bp
    from blueprints.chat import bp as chat_bp

    app.register_blueprint(core_bp)
    app.register_blueprint(groups_bp)
    app.register_blueprint(upload_bp)
    app.register_blueprint(chat_bp)
