"""
Central place for Flask extensions.

This avoids circular imports and keeps create_app clean.
Extensions are initialized in create_app() in __init__.py, where the app context is available.
The row store is not an extension object; create_app() keeps it in app.extensions["row_store"].
"""


from flask_login import LoginManager
from flask_wtf import CSRFProtect

# Global extension instances - these are imported and initialized in create_app() in __init__.py with the app context.
login_manager = LoginManager()
csrf = CSRFProtect()
