"""
msgident: message identifier resolution for evolving binary protocols.

Maps curated message names to the ids and content hashes of one protocol build.
"""

__version__ = "0.1.0"

from msgident.identifiers import (
    Identifiers,
    Incoming,
    Outgoing,
    MalformedLineError,
    MessageId,
    UNRESOLVED_ID,
)
from msgident.build_index import BuildIndex, HashBuildIndex, MessageRecord
from msgident.catalog import MessageCatalog
from msgident.config import ResolverConfig, ConfigValidator, ConfigValidationError

__all__ = [
    "Identifiers",
    "Incoming",
    "Outgoing",
    "MalformedLineError",
    "MessageId",
    "UNRESOLVED_ID",
    # Build index
    "BuildIndex",
    "HashBuildIndex",
    "MessageRecord",
    # Catalog
    "MessageCatalog",
    # Configuration
    "ResolverConfig",
    "ConfigValidator",
    "ConfigValidationError",
]
