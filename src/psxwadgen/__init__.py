"""psxwadgen: convert PlayStation Doom disc data for PC source ports."""

__version__ = "0.3.0"
