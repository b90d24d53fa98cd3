"""
Persistence package. `storage` is the process-wide DBStorage; create_app()
binds it to DATABASE_URL and creates the tables.
"""
from models.db_storage import DBStorage

storage = DBStorage()
