"""Reporters - Records of dispatch calls."""

from bromato.reporters.chain_recorder import ChainRecorder, LogEntry

__all__ = ["ChainRecorder", "LogEntry"]
