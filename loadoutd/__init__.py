"""loadoutd: local HTTP daemon and CLI for loadout profiles and plugins."""

__version__ = "0.1.0"
