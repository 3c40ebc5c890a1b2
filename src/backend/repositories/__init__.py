"""
Data source layer.

This package contains all access to persistence and auth, isolated from
business logic. Two interchangeable implementations share one interface.
"""

from repositories.data_source import (STAND_IN_USER_ID, DataSource, Embed,
                                      OrFilter, TableQuery)
from repositories.remote_data_source import RemoteDataSource
from repositories.synthetic_data_source import SyntheticDataSource

__all__ = [
    "DataSource",
    "Embed",
    "OrFilter",
    "TableQuery",
    "RemoteDataSource",
    "SyntheticDataSource",
    "STAND_IN_USER_ID",
]
