"""pkgrel: cut per-package release branches from a monorepo."""

__version__ = "0.1.0"
