"""AI-assisted authoring of fitness equipment blog articles."""

__version__ = "0.1.0"
