"""Version information for utility-tool package"""

__version__ = "0.4.0"
__version_info__ = (0, 4, 0)
__author__ = "utility-tool contributors"
__license__ = "MIT"

# Version details
VERSION_MAJOR = 0
VERSION_MINOR = 4
VERSION_PATCH = 0

VERSION_STRING = f"{VERSION_MAJOR}.{VERSION_MINOR}.{VERSION_PATCH}"

# Ensure version consistency
assert __version__ == VERSION_STRING, "Version mismatch between __version__ and VERSION_STRING"


def get_version():
    """Get the version string"""
    return __version__
