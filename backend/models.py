from flask_sqlalchemy import SQLAlchemy
from shared.models import Base, PoleCapture, UserData

db = SQLAlchemy(model_class=Base)

__all__ = ['db', 'PoleCapture', 'UserData']
