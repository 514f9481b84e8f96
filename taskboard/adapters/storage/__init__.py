"""Record store adapters.

The board service depends on ``AbstractRecordStore`` only, so the JSON file
backend can be replaced without touching services or routes.
"""
