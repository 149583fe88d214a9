"""Request descriptor normalization and merging.

A request descriptor is a plain dictionary (``method``, ``url``, ``params``,
``data``, ``json``, ``headers``, ``timeout`` and any extra keys a custom
transport understands). Callers may describe a request as a bare URL string,
as a mapping, or as a factory turning an input into either of those.
"""

import json
from collections.abc import Callable, Mapping
from typing import Any

from src.transport.errors import DescriptorError

RequestDescriptor = dict[str, Any]
DescriptorSource = str | Mapping[str, Any]
DescriptorFactory = Callable[[Any], DescriptorSource]


def normalize_descriptor(config: DescriptorSource) -> RequestDescriptor:
    """Turn a URL string or mapping into a fresh descriptor dictionary.

    Args:
        config: URL string or mapping describing the request

    Returns:
        A new descriptor dictionary

    Raises:
        DescriptorError: If config is neither a string nor a mapping

    Example:
        >>> normalize_descriptor("/users")
        {'url': '/users'}
    """
    if isinstance(config, str):
        return {"url": config}
    if isinstance(config, Mapping):
        return dict(config)

    msg = f"Request descriptor must be a URL string or a mapping, got {type(config).__name__}"
    raise DescriptorError(msg)


def apply_input(arg: Any, config_or_factory: DescriptorSource | DescriptorFactory) -> RequestDescriptor:
    """Build a descriptor for one input.

    Args:
        arg: The input the request is derived from
        config_or_factory: Static descriptor or factory called with ``arg``

    Returns:
        Normalized descriptor dictionary

    Raises:
        DescriptorError: If the resulting descriptor is malformed
    """
    config = config_or_factory(arg) if callable(config_or_factory) else config_or_factory
    return normalize_descriptor(config)


def merge_descriptor(
    base: Mapping[str, Any],
    overrides: Mapping[str, Any] | None = None,
) -> RequestDescriptor:
    """Shallow-merge overrides on top of a base descriptor.

    Overrides win on key collision, which lets a caller pin the HTTP method
    while the factory supplies URL and parameters.

    Args:
        base: Descriptor built for an input
        overrides: Keys forced onto every descriptor

    Returns:
        The merged descriptor
    """
    return {**base, **(overrides or {})}


def dependency_key(descriptor: Mapping[str, Any], will_run: bool = True) -> tuple:
    """Compute a hashable change-detection key for a descriptor.

    Args:
        descriptor: The request descriptor
        will_run: Whether the request is enabled

    Returns:
        Tuple of (will_run, url, method, params, data) with params and
        data serialized to JSON
    """
    return (
        will_run,
        descriptor.get("url"),
        descriptor.get("method"),
        json.dumps(descriptor.get("params"), sort_keys=True, default=str),
        json.dumps(descriptor.get("data"), sort_keys=True, default=str),
    )
