"""Per-view helpers: lazy dialog fragments and a uniform CRUD request facade."""

__version__ = "0.1.0"
