"""Action Layer - Terminal action and getter execution."""

from bromato.layers.action.executor import ActionExecutor

__all__ = ["ActionExecutor"]
