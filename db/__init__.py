"""
db/ - Database Layer
====================
Handles PostgreSQL connections, schema declaration and schema initialization.
This layer is the lowest in the architecture and has no dependencies on other layers
except the shared models and utilities.
"""
