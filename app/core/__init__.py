# Core module - config, database, dependencies
from app.core.config import settings, get_settings
from app.core.database import Base, AsyncSessionLocal, create_tables
