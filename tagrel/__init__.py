"""tagrel - build and publish release binaries when a version tag is pushed."""

__version__ = "0.1.0"
