"""Base class for endpoint modules."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pysunsynk.client import SunSynkClient


class BaseEndpoint:
    """Base class for API endpoint groups.

    Endpoint groups hold a reference to the client for its HTTP primitive
    and keep no session state of their own.
    """

    def __init__(self, client: SunSynkClient) -> None:
        """Initialize endpoint group.

        Args:
            client: SunSynkClient providing ``_request``
        """
        self.client = client
