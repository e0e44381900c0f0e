from .access import AccessPolicy, resolve_effective_premium
from .biodata_service import BiodataService, get_biodata_service
from .contact_request_service import ContactRequestService, get_contact_request_service
from .favourite_service import FavouriteService, get_favourite_service
from .user_service import UserService, get_user_service

__all__ = [
    "AccessPolicy",
    "BiodataService",
    "ContactRequestService",
    "FavouriteService",
    "UserService",
    "get_biodata_service",
    "get_contact_request_service",
    "get_favourite_service",
    "get_user_service",
    "resolve_effective_premium",
]
