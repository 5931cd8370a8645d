"""
sitepipe - publishes generated static sites through GitHub and Render
"""

__version__ = "0.1.0"
