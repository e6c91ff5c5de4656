"""SQLAlchemy models for BookHaven.

All models are imported here so that ``Base.metadata.create_all`` can
discover them. If you add a new model, import it in this file.
"""

from bookhaven.models.booking import Booking
from bookhaven.models.property import Property
from bookhaven.models.user import User

__all__ = [
    "Booking",
    "Property",
    "User",
]
