"""Remote system-of-record client."""

from possync.infrastructure.remote.http_client import HttpRemoteApi

__all__ = ["HttpRemoteApi"]
