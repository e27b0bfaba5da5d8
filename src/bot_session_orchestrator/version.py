"""Version information for Bot Session Orchestrator."""

__version__ = "0.3.0"


def get_version() -> str:
    """Get the current version string.

    Returns:
        Version string in semantic versioning format.
    """
    return __version__
