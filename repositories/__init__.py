"""
repositories/ - Data Access Layer
==================================
Each repository encapsulates the SQL for one concern.
Repositories receive raw rows from the database and return plain Python values.
"""
