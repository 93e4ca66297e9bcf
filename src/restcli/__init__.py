"""restcli -- REST command line interface gateway.

This package exposes a fixed, operator-declared set of shell commands
over HTTP. Each request names a registered command ID and supplies
parameters; the command's output is mapped back into the response
according to the command's output policy.
"""

__version__ = "0.1.0"
