"""Interpreter layers: locator building, terminal execution and middleware."""
