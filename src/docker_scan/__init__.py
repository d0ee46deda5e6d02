"""docker-scan: ScanID authentication for the docker scan CLI plugin.

Obtains, validates and caches the signed ScanID token that authorizes
vulnerability scans against Docker Hub. The scanner invocation itself lives
outside this package and only asks for a bearer token string.
"""

__version__ = "0.1.0"
