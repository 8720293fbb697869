from .subscriptions import bp as subscriptions_bp


def register_blueprints(app):
    app.register_blueprint(subscriptions_bp)
