"""
Postline - social posting backend with scheduled publication.
"""
__version__ = "1.0.0"
