from .content import Content, ContentKind, ContentStatus
from .content_translation import ContentTranslation, TranslationStatus
from .seo_meta import SeoMeta
from .user import Role, User

__all__ = [
    "Content",
    "ContentKind",
    "ContentStatus",
    "ContentTranslation",
    "TranslationStatus",
    "SeoMeta",
    "Role",
    "User",
]
