"""
NoteGuard - access control and edit leases for shared notes

Decides who may read or change a note and who currently holds the
exclusive right to edit it.

Version: 1.0.0
"""

__version__ = "1.0.0"
