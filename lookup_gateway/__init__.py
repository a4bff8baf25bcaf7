"""RDAP lookup gateway - rate-limited RDAP proxy with a fallback source chain."""

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("rdap-lookup-gateway")
except PackageNotFoundError:
    __version__ = "0.1.0"
