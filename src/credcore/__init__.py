"""credcore: credential matching queries and encrypted secret bytes."""

from credcore.matchers import describe_query, filter_credentials, parse_query
from credcore.secrets import decode_secret, encode_secret, looks_like_encoded_secret

__version__ = "0.1.0"

__all__ = [
    "parse_query",
    "describe_query",
    "filter_credentials",
    "encode_secret",
    "decode_secret",
    "looks_like_encoded_secret",
]
