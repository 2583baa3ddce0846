"""SQLite Workspace Manager - реестр SQLite-баз, найденных в отслеживаемых папках."""

__version__ = "0.3.1"
