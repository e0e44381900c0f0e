"""Repository layer to abstract MongoDB access patterns."""

from .biodata import BiodataRepository
from .contact_request import ContactRequestRepository
from .favourite import FavouriteRepository
from .success_counter import SuccessCounterRepository
from .user import UserRepository

__all__ = [
    "BiodataRepository",
    "ContactRequestRepository",
    "FavouriteRepository",
    "SuccessCounterRepository",
    "UserRepository",
]
