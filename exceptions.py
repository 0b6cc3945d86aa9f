"""
exceptions.py

Responsibility: Defines all custom exception classes used across the application.
Does NOT: contain business logic, logging, or HTTP handling.
"""

from __future__ import annotations


class IpFetchError(Exception):
    """
    Raised inside IpInfoClient when the public IP address cannot be determined.

    This may occur due to network connectivity issues, a non-2xx status, or a
    response body with no extractable address field. IpInfoClient.fetch()
    catches it and returns an invalid RemoteAddressRecord instead.
    """


class InterfaceEnumerationError(Exception):
    """
    Raised when the operating system refuses to list network interfaces.

    enumerate_interfaces() catches this and degrades to an empty candidate
    list, which callers render as "no local address".
    """


class ConfigLoadError(Exception):
    """
    Raised by ConfigRepository when the configuration row is missing or
    cannot be read from the database.
    """
