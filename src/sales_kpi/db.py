"""MongoDB helpers.

Centralizes creation of Mongo clients for reading the transaction collection
and writing report collections.
"""

from __future__ import annotations

from typing import Any
from pymongo import MongoClient
from pymongo.database import Database

import certifi


def get_client(uri: str) -> MongoClient:
    """Return a configured PyMongo MongoClient for the provided URI.

    TLS with the certifi CA bundle is enabled for Atlas-style
    (`mongodb+srv://`) URIs or when the URI asks for it.

    Args:
        uri: MongoDB connection URI.

    Returns:
        Configured MongoClient instance.
    """
    use_tls = uri.startswith("mongodb+srv://") or "tls=true" in uri.lower() or "ssl=true" in uri.lower()
    kwargs: dict[str, Any] = {
        "serverSelectionTimeoutMS": 30000,
        "socketTimeoutMS": 30000,
        "connectTimeoutMS": 30000,
    }
    if use_tls:
        kwargs.update(tls=True, tlsCAFile=certifi.where())
    return MongoClient(uri, **kwargs)


def get_db(
    client: MongoClient[dict[str, Any]],
    db_name: str,
) -> Database[dict[str, Any]]:
    """Return the named Database instance from a MongoClient.

    Args:
        client: PyMongo MongoClient.
        db_name: Database name.

    Returns:
        A Database object.
    """
    return client[db_name]
