"""shipyard: build a platform matrix, publish draft releases, gate on the manifest."""

__version__ = "0.1.0"
