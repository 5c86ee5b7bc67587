"""
TMS Backend
Shared SQLAlchemy handle. Model modules import ``db`` from here;
``create_app`` imports the model modules so metadata is complete
before ``db.create_all()``.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
