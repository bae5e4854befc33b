"""
Sharing Domain

Share codes, share records, payload encryption and the store contracts.
"""

from .blob_store import IBlobStore
from .code_generator import CodeGenerator
from .crypto import CryptoHelper
from .entities import ShareRecord
from .repositories import ShareRepository
from .signed_url_service import SignedUrl, SignedUrlService
from .value_objects import BlobKey, ShareCode

__all__ = [
    "BlobKey",
    "CodeGenerator",
    "CryptoHelper",
    "IBlobStore",
    "ShareCode",
    "ShareRecord",
    "ShareRepository",
    "SignedUrl",
    "SignedUrlService",
]
