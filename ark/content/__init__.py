"""Per-file content processing: language, comments, encoding, secrets"""

from .comments import delete_comments, strip_comments
from .encoding import NotTextError, is_binary, is_image, read_text
from .languages import detect_language
from .secrets import MASK, SecretFinding, SecretScanner, mask_secrets

__all__ = [
    'MASK',
    'NotTextError',
    'SecretFinding',
    'SecretScanner',
    'delete_comments',
    'detect_language',
    'is_binary',
    'is_image',
    'mask_secrets',
    'read_text',
    'strip_comments',
]
