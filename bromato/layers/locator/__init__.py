"""Locator Layer - Chain building and options normalization."""

from bromato.layers.locator.chain_builder import LocatorChainBuilder
from bromato.layers.locator.options import normalize_options, to_snake_case

__all__ = ["LocatorChainBuilder", "normalize_options", "to_snake_case"]
