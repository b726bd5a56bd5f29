"""
Infrastructure layer: persistence, authentication and the HTTP surface.
"""
