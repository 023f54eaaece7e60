"""todoapi — multi-user to-do list REST API.

Users register and log in to receive an ``x-auth`` token; every to-do
operation is scoped to the user that token belongs to.
"""

__version__ = "0.1.0"
