from .error import ErrorType, classify_status
from .favorites import (
    ApiEnvelope,
    FavoriteCheck,
    FavoriteCreate,
    FavoriteItem,
    FavoriteMaid,
    Nationality,
)

__all__ = [
    "ApiEnvelope",
    "ErrorType",
    "FavoriteCheck",
    "FavoriteCreate",
    "FavoriteItem",
    "FavoriteMaid",
    "Nationality",
    "classify_status",
]
