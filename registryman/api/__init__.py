"""Admission webhook HTTP layer.

This package provides the Falcon Asynchronous Server Gateway Interface
(ASGI) application that validates Registry, Project and Scanner changes
before the cluster accepts them.

Public API
----------
create_app
    Application factory registering the health checks and, given a live store
    handle, the admission endpoint.
AppDependencies
    Collaborators handed to :func:`create_app`.
LiveStoreHandle
    Lazily loaded view of the manifest directory.
"""

from registryman.api.app import AppDependencies, create_app
from registryman.api.store_handle import LiveStoreHandle

__all__ = ["AppDependencies", "LiveStoreHandle", "create_app"]
