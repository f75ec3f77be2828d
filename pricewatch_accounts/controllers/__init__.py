"""
Request controllers for the accounts service.

Each controller handles one transition of the account lifecycle and returns
``(data, status, headers)``. Controllers that start or end a session put the
cookie to set under ``data['cookies']``; the route layer does the rest.
"""

from . import account, authentication, flags, passwords, registration
