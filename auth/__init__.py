"""auth/ -- User directory, sessions and credential lifecycle for Roster.

Layer rule: auth/ imports only stdlib, third-party libraries, core/ and mail/.
It does NOT import from api/.
api/ imports from auth/, not the other way around.
"""
