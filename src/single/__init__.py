"""Single-request variants built on the same transport and descriptors."""

from src.single.request_callback import (
    RequestCallback,
    delete_callback,
    get_callback,
    patch_callback,
    post_callback,
    put_callback,
    request_callback,
)
from src.single.request_data import RequestData, get_data

__all__ = [
    "RequestCallback",
    "RequestData",
    "delete_callback",
    "get_callback",
    "get_data",
    "patch_callback",
    "post_callback",
    "put_callback",
    "request_callback",
]
