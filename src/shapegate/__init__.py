"""shapegate - structural pattern learning and matching for source code.

Learns the recurring shapes of a codebase's files (handlers, services,
repositories, components, ...) and scores new files against weighted
reference examples of those shapes.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("shapegate")
except PackageNotFoundError:
    __version__ = "0.0.0"
