# Import all models so they register with SQLAlchemy Base.metadata
# This ensures Base.metadata.create_all() creates all tables

from models.user import User
from models.garden_state import GardenBlob

__all__ = [
    "User",
    "GardenBlob",
]
