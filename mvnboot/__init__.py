"""
mvnboot - reproducible Apache Maven bootstrap.

Resolves the Maven version a project declares, and makes sure a matching
``mvn`` binary is available by downloading, verifying, and unpacking it
when necessary.
"""

__version__ = "0.1.0"
