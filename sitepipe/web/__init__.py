"""
HTTP surface for the deployment pipeline
"""

from sitepipe.web.app import create_app

__all__ = ["create_app"]
