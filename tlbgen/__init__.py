"""tlbgen - TL-B cell layout serializer generator."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("tlbgen")
except PackageNotFoundError:
    __version__ = "(local)"
