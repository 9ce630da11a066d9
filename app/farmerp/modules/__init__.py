"""
Feature modules live under this package.

Each module owns its models/service/blueprint and is listed in `system_modules`;
the shell only routes to modules whose descriptor is enabled. Modules reuse the
platform primitives (session context, RBAC, data service, query cache).
"""
