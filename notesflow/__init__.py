"""NotesFlow client controller layer.

Session lifecycle, plan quota checks and paginated note listing against the
NotesFlow REST API.
"""

__version__ = "0.1.0"
