"""Form engine: path addressing, presence, rows, notification and the form facade."""
