"""
HTTP layer: app factory, response envelope, admin routes.
"""
