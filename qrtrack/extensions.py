from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from .helpers.background import BackgroundRunner

db = SQLAlchemy()
migrate = Migrate()
background = BackgroundRunner()
