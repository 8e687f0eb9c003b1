"""rugbyclaw - resilient rugby fixtures, results and kickoff verification."""

from rugbyclaw.config import VERSION

__version__ = VERSION
