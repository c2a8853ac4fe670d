"""Level translation engine: PSX map lumps to vanilla Doom PWADs."""
