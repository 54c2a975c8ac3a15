from .content import (
    ContentCreate,
    ContentFilters,
    ContentPage,
    ContentRead,
    DeletionResult,
    SeoMetaCreate,
    SeoMetaRead,
    SeoMetaUpdate,
    TranslationCreate,
    TranslationListItem,
    TranslationRead,
    TranslationUpdate,
)
from .user import RoleUpdate, UserCreate, UserResponse, UserUpdate

# Define the public API of this module
__all__ = [
    "ContentCreate",
    "ContentFilters",
    "ContentPage",
    "ContentRead",
    "DeletionResult",
    "SeoMetaCreate",
    "SeoMetaRead",
    "SeoMetaUpdate",
    "TranslationCreate",
    "TranslationListItem",
    "TranslationRead",
    "TranslationUpdate",
    "RoleUpdate",
    "UserCreate",
    "UserResponse",
    "UserUpdate",
]
