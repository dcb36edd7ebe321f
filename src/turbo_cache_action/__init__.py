"""Start and stop a Turborepo remote cache server around a CI job."""

__version__ = "0.1.0"
