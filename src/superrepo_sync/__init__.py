"""superrepo-sync: fetch, pull and push a superrepo and all of its submodules."""

__version__ = "0.1.0"
