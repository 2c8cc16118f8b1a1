"""Git workspace synchronization and conflict/checkpoint restoration."""

__version__ = "0.1.0"
