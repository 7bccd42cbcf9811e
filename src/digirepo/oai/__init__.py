# These constants are put into a _version.py file by the
# release build. If they are present, then we want to import
# them here, so they can be reported by the version endpoint.

try:
    from digirepo.oai._version import __version__
except (ModuleNotFoundError, ImportError):
    __version__ = None

try:
    from digirepo.oai._version import __commit__
except (ModuleNotFoundError, ImportError):
    __commit__ = None

__all__ = ["__version__", "__commit__"]
