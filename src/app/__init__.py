"""Book registry application.

This package contains the registry core, its storage backends, the HTTP API
and the runtime configuration.
"""

__version__ = "0.1.0"
