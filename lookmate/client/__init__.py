from lookmate.client.composition import ActiveLook, CompositionController, FittingLayer
from lookmate.client.config import ClientSettings
from lookmate.client.errors import ApiError, AuthRequiredError, RepositoryError
from lookmate.client.renderer import RenderTarget, SnapshotRenderer
from lookmate.client.store import LookMateStore

__all__ = [
    "ActiveLook",
    "CompositionController",
    "FittingLayer",
    "ClientSettings",
    "ApiError",
    "AuthRequiredError",
    "RepositoryError",
    "RenderTarget",
    "SnapshotRenderer",
    "LookMateStore",
]
