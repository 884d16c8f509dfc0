"""Session engine: scoring, attempt ledgers, join codes and the lifecycle.

Transport code (HTTP blueprints, socket handlers) imports from here; the
modules in this package never build HTTP responses themselves.
"""
